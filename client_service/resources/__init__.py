"""
Package des ressources déclaratives et du moteur de convergence

Les recettes déclarent des ressources (répertoires, templates, services...)
que le Converger applique de manière idempotente.
"""

from .base import Notification, Resource, ResourceError
from .collection import ResourceCollection
from .files import Directory, File, Link, RemoteFile, Template
from .runner import ConvergeReport, Converger, RunContext
from .service import Service
from .system import Execute, Log, User

__all__ = [
    'Notification', 'Resource', 'ResourceError', 'ResourceCollection',
    'Directory', 'File', 'Link', 'RemoteFile', 'Template',
    'ConvergeReport', 'Converger', 'RunContext',
    'Service', 'Execute', 'Log', 'User',
]
