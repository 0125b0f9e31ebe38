"""
Gestionnaire du service chef-client

Point d'entrée unique pour installer, démarrer, arrêter, interroger et
désinstaller le service selon le style d'init de la plateforme.
"""

import ctypes
import os
import platform
import subprocess
from typing import Any, Dict, Optional

from ..core.binary import ClientBinaryNotFound
from ..core.config import ConfigurationError, ServiceConfig
from ..core.logger import get_logger
from ..core.platform import NodeInfo, detect_node
from ..core.scheduler import ClientRunScheduler
from ..recipes.base import Recipe
from ..recipes.repository import compile_repository_recipe
from ..recipes.service import compile_service_recipe, prepare_client
from ..resources import ConvergeReport, Converger, ResourceError, RunContext
from . import BaseService, get_service_style


class ServiceManager:
    """Gestionnaire du service chef-client multi-plateforme"""

    def __init__(self, config: ServiceConfig, node: Optional[NodeInfo] = None, dry_run: bool = False):
        """
        Args:
            config: Configuration de l'outil
            node: Noeud (détecté si absent)
            dry_run: Simulation sans modification du système
        """
        self.config = config
        self.logger = get_logger()
        self.dry_run = dry_run

        self.node = config.apply_node_overrides(node or detect_node())
        self.attributes = config.build_attributes(self.node)
        self.fork_overridden = 'fork' in config.get_attribute_overrides()
        self.last_report = None

        self.logger.debug(
            f"ServiceManager initialisé pour {self.node.platform} {self.node.platform_version} "
            f"(famille {self.node.platform_family}, style {self.init_style})"
        )

    @property
    def init_style(self) -> str:
        return self.attributes.get('init_style') or 'none'

    @staticmethod
    def is_admin() -> bool:
        """Vérifie si le script s'exécute avec les privilèges administrateur"""
        if platform.system() != "Windows":
            return os.geteuid() == 0

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False

    def _context(self) -> RunContext:
        return RunContext(self.node, self.attributes, self.logger, dry_run=self.dry_run)

    def _style(self) -> BaseService:
        return get_service_style(self.init_style)(self.node, self.attributes)

    def _resolve_client(self):
        """Localise chef-client si possible, sans échec pour les opérations de lecture"""
        try:
            prepare_client(self.node, self.attributes, self.fork_overridden)
        except ClientBinaryNotFound:
            self.logger.debug("chef-client introuvable, attributs par défaut conservés")

    def _require_admin(self, operation: str) -> bool:
        if self.dry_run or self.is_admin():
            return True
        self.logger.error(f"❌ Privilèges administrateur requis pour {operation}")
        self.logger.info("💡 Conseil: relancez la commande en root / depuis un terminal administrateur")
        return False

    def _converge(self, recipe: Recipe) -> ConvergeReport:
        self.last_report = Converger(recipe.collection, self._context()).converge()
        return self.last_report

    def compile(self) -> Recipe:
        """
        Compile la recette de service sans l'appliquer

        Raises:
            ClientBinaryNotFound: Si chef-client est introuvable
        """
        recipe, _style = compile_service_recipe(self.node, self.attributes, self.fork_overridden)
        return recipe

    def install_service(self) -> bool:
        """
        Installe (ou met à jour) le service selon le style d'init

        Returns:
            bool: True si installation réussie

        Raises:
            ClientBinaryNotFound: Si chef-client est introuvable
        """
        if not self._require_admin("installer le service"):
            return False

        try:
            recipe = self.compile()
            report = self._converge(recipe)
        except (ResourceError, ConfigurationError) as e:
            self.logger.error(f"❌ Erreur lors de l'installation du service: {e}")
            return False

        self.logger.info(f"✅ Service chef-client ({self.init_style}) convergé: {report.summary()}")
        return True

    def configure_repository(self) -> bool:
        """
        Configure le dépôt de paquets selon repository_style
        """
        if not self._require_admin("configurer le dépôt"):
            return False

        try:
            recipe = compile_repository_recipe(Recipe(self.node, self.attributes))
            if not len(recipe.collection):
                self.logger.info("Aucun dépôt à configurer")
                return True
            report = self._converge(recipe)
        except (ResourceError, ConfigurationError) as e:
            self.logger.error(f"❌ Erreur lors de la configuration du dépôt: {e}")
            return False

        self.logger.info(f"✅ Dépôt configuré: {report.summary()}")
        return True

    def start_service(self) -> bool:
        """Démarre le service"""
        if not self._require_admin("démarrer le service"):
            return False
        self._resolve_client()
        return self._style().start_service(self._context())

    def stop_service(self) -> bool:
        """Arrête le service"""
        if not self._require_admin("arrêter le service"):
            return False
        self._resolve_client()
        return self._style().stop_service(self._context())

    def restart_service(self) -> bool:
        """Redémarre le service"""
        if not self._require_admin("redémarrer le service"):
            return False
        self._resolve_client()
        return self._style().restart_service(self._context())

    def uninstall_service(self) -> bool:
        """Désinstalle le service"""
        if not self._require_admin("désinstaller le service"):
            return False
        self._resolve_client()
        try:
            return self._style().uninstall(self._context())
        except ConfigurationError as e:
            self.logger.error(f"❌ Erreur lors de la désinstallation du service: {e}")
            return False

    def get_service_status(self) -> Dict[str, Any]:
        """Retourne l'état du service"""
        self._resolve_client()
        try:
            status = self._style().get_status(self._context())
        except ConfigurationError as e:
            self.logger.error(f"Erreur lors de la vérification du service: {e}")
            return {'init_style': self.init_style, 'installed': False, 'running': False, 'error': str(e)}

        status['platform'] = self.node.platform
        status['client_bin'] = self.attributes.get('bin')
        return status

    def client_command(self) -> list:
        """
        Commande d'une exécution unique de chef-client
        """
        attrs = self.attributes
        cmd = [attrs['bin'], '-c', os.path.join(attrs['conf_dir'], 'client.rb')]
        if attrs.get('log_file'):
            cmd += ['-L', os.path.join(attrs['log_dir'], attrs['log_file'])]
        if attrs.get('environment'):
            cmd += ['-E', attrs['environment']]
        return cmd

    def run_client_once(self) -> int:
        """
        Lance chef-client une fois et retourne son code de sortie
        """
        cmd = self.client_command()
        self.logger.info(f"Lancement: {' '.join(cmd)}")
        if self.dry_run:
            return 0

        result = subprocess.run(cmd)
        if result.returncode != 0:
            self.logger.error(f"chef-client terminé en erreur (code {result.returncode})")
        return result.returncode

    def create_scheduler(self) -> ClientRunScheduler:
        """
        Prépare l'exécution périodique de chef-client au premier plan

        Raises:
            ClientBinaryNotFound: Si chef-client est introuvable
        """
        prepare_client(self.node, self.attributes, self.fork_overridden)
        return ClientRunScheduler(
            self.attributes['interval'],
            self.attributes['splay'],
            self.logger,
            self.run_client_once,
        )
