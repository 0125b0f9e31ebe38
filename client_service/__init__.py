"""
chef-client-service - Installation de chef-client comme service système

Ce module installe et gère l'agent chef-client en tâche de fond sur
chaque plateforme (SysV init, upstart, SMF, launchd, service Windows,
runit, bluepill, daemontools...) selon le style d'init du noeud.

Author: chef-client-service Team
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "chef-client-service Team"

# Imports principaux pour faciliter l'utilisation
from .core.config import ServiceConfig
from .core.logger import ServiceLogger
from .core.platform import NodeInfo, detect_node

__all__ = ['ServiceConfig', 'ServiceLogger', 'NodeInfo', 'detect_node']
