"""
Classe de base des styles de service chef-client

Chaque style d'init (SysV, SMF, upstart, launchd, service Windows...)
déclare les ressources d'installation et expose le cycle de vie du
service via son fournisseur.
"""

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import psutil

from ..core.logger import get_logger
from ..core.platform import NodeInfo
from ..recipes.base import Recipe
from ..resources import (
    Converger, File, Link, ResourceCollection, ResourceError, RunContext, Service,
)
from ..resources.providers import ServiceProvider, get_provider


CLIENT_NAME = 'chef-client'
SERVICE_RESOURCE = f"service[{CLIENT_NAME}]"


def find_client_processes(name: str = CLIENT_NAME) -> List[int]:
    """
    Recherche les processus chef-client en cours

    Args:
        name: Nom de l'exécutable

    Returns:
        list: PIDs trouvés
    """
    pids = []
    for proc in psutil.process_iter(['pid', 'name', 'cmdline']):
        try:
            proc_name = proc.info['name'] or ''
            cmdline = proc.info['cmdline'] or []
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

        # chef-client est souvent un script lancé par ruby
        if proc_name.startswith(name) or any(
                os.path.basename(arg) in (name, f"{name}.exe") for arg in cmdline[:3]):
            pids.append(proc.info['pid'])
    return pids


class BaseService(ABC):
    """
    Classe de base abstraite pour tous les styles de service
    """

    init_style = None
    provider_name = None
    service_name = CLIENT_NAME

    def __init__(self, node: NodeInfo, attributes: Dict[str, Any]):
        """
        Args:
            node: Noeud courant
            attributes: Attributs chef_client effectifs
        """
        self.node = node
        self.attributes = attributes
        self.logger = get_logger()

    @property
    def client_bin(self) -> str:
        return self.attributes['bin']

    @abstractmethod
    def declare(self, recipe: Recipe):
        """
        Déclare les ressources d'installation du service

        Args:
            recipe: Recette dans laquelle déclarer les ressources
        """

    def provider_options(self) -> Dict[str, Any]:
        return {}

    def get_provider(self) -> Optional[ServiceProvider]:
        if self.provider_name is None:
            return None
        return get_provider(self.provider_name, self.service_name, self.node.platform_family,
                            self.provider_options())

    def definition_paths(self) -> List[str]:
        """
        Fichiers et liens créés par l'installation du service
        """
        recipe = Recipe(self.node, self.attributes)
        self.declare(recipe)
        return [
            resource.path for resource in recipe.collection
            if isinstance(resource, (File, Link))
        ]

    def is_installed(self) -> bool:
        paths = self.definition_paths()
        return bool(paths) and all(os.path.lexists(path) for path in paths)

    def is_running(self, context: RunContext) -> bool:
        provider = self.get_provider()
        if provider is None:
            return bool(find_client_processes())
        return provider.is_running(context)

    def _lifecycle(self, action: str, context: RunContext) -> bool:
        provider = self.get_provider()
        if provider is None:
            self.logger.warning(
                f"Le style '{self.init_style}' n'a pas de gestionnaire de services, "
                f"action '{action}' impossible"
            )
            return False

        resource = Service(self.service_name, provider=self.provider_name,
                           provider_options=self.provider_options(), action=action)
        try:
            resource.run_action(action, context)
        except ResourceError as e:
            self.logger.error(f"❌ Échec de l'action '{action}' sur {self.service_name}: {e}")
            return False

        self.logger.info(f"✅ Action '{action}' appliquée au service '{self.service_name}'")
        return True

    def start_service(self, context: RunContext) -> bool:
        return self._lifecycle('start', context)

    def stop_service(self, context: RunContext) -> bool:
        return self._lifecycle('stop', context)

    def restart_service(self, context: RunContext) -> bool:
        return self._lifecycle('restart', context)

    def uninstall(self, context: RunContext) -> bool:
        """
        Arrête et désactive le service puis supprime ses fichiers

        Returns:
            bool: True si la désinstallation a réussi
        """
        collection = ResourceCollection()
        if self.provider_name is not None:
            collection.add(Service(self.service_name, provider=self.provider_name,
                                   provider_options=self.provider_options(),
                                   action=['stop', 'disable']))

        for path in reversed(self.definition_paths()):
            if os.path.islink(path):
                collection.add(Link(path, to='', action='delete'))
            else:
                collection.add(File(path, action='delete'))

        try:
            Converger(collection, context).converge()
        except ResourceError as e:
            self.logger.error(f"❌ Erreur désinstallation service: {e}")
            return False

        self.logger.info(f"✅ Service '{self.service_name}' désinstallé")
        return True

    def get_status(self, context: RunContext) -> Dict[str, Any]:
        """
        Récupère le statut du service

        Returns:
            dict: Statut détaillé du service
        """
        return {
            'init_style': self.init_style,
            'service_name': self.service_name,
            'installed': self.is_installed(),
            'running': self.is_running(context),
            'pids': find_client_processes(),
        }
