"""
Moteur de convergence

Applique les ressources d'une collection dans l'ordre de déclaration,
puis les notifications différées (dédoublonnées) en fin d'exécution.
En mode simulation (why-run), rien n'est modifié sur le système.
"""

import logging
import subprocess
from typing import Any, Dict, List, Optional, Tuple, Union

from .base import Resource, ResourceError
from .collection import ResourceCollection
from .templates import TemplateRenderer


class RunContext:
    """
    Contexte partagé par les ressources pendant une exécution
    """

    def __init__(self, node, attributes: Dict[str, Any], logger: logging.Logger,
                 dry_run: bool = False, renderer: Optional[TemplateRenderer] = None,
                 command_timeout: int = 300):
        self.node = node
        self.attributes = attributes
        self.logger = logger
        self.dry_run = dry_run
        self.renderer = renderer or TemplateRenderer()
        self.command_timeout = command_timeout

    def node_view(self) -> Dict[str, Any]:
        """Vue du noeud exposée aux templates (node.platform, node.chef_client...)"""
        view = self.node.to_dict()
        view['chef_client'] = self.attributes
        return view

    def render_template(self, source: str, variables: Optional[Dict[str, Any]] = None) -> str:
        return self.renderer.render(source, self.node_view(), variables)

    def query(self, cmd: Union[str, List[str]], shell: bool = False) -> subprocess.CompletedProcess:
        """
        Exécute une commande en lecture seule (statut, garde), même en simulation
        """
        return subprocess.run(cmd, shell=shell, capture_output=True, text=True,
                              timeout=self.command_timeout)

    def execute(self, cmd: Union[str, List[str]], shell: bool = False, cwd: Optional[str] = None,
                env: Optional[Dict[str, str]] = None) -> Optional[subprocess.CompletedProcess]:
        """
        Exécute une commande qui modifie le système

        Raises:
            ResourceError: Si la commande échoue
        """
        printable = cmd if isinstance(cmd, str) else ' '.join(cmd)
        if self.dry_run:
            self.logger.info(f"[simulation] exécuterait: {printable}")
            return None

        self.logger.debug(f"Exécution: {printable}")
        try:
            result = subprocess.run(cmd, shell=shell, cwd=cwd, env=env, capture_output=True,
                                    text=True, timeout=self.command_timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ResourceError(f"Commande '{printable}' impossible: {e}") from e

        if result.returncode != 0:
            raise ResourceError(
                f"Commande '{printable}' en échec (code {result.returncode}): "
                f"{(result.stderr or result.stdout).strip()}"
            )
        return result


class ConvergeReport:
    """
    Résultat d'une exécution : ressources modifiées (ou qui le seraient)
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run
        self.updated = []
        self.total = 0

    def record(self, resource: Resource, action: str):
        self.updated.append((resource.key, action))

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    def was_updated(self, key: str, action: Optional[str] = None) -> bool:
        return any(k == key and (action is None or a == action) for k, a in self.updated)

    def summary(self) -> str:
        verb = "seraient modifiées" if self.dry_run else "modifiées"
        return f"{self.updated_count}/{self.total} ressources {verb}"


class Converger:
    """
    Applique une collection de ressources
    """

    def __init__(self, collection: ResourceCollection, context: RunContext):
        self.collection = collection
        self.context = context
        self.logger = context.logger
        self._delayed = []

    def converge(self) -> ConvergeReport:
        """
        Applique toutes les ressources puis les notifications différées

        Returns:
            ConvergeReport: Ressources modifiées

        Raises:
            ResourceError: À la première ressource en échec
        """
        self.collection.validate()
        report = ConvergeReport(dry_run=self.context.dry_run)
        report.total = len(self.collection)
        self._delayed = []

        mode = "simulation" if self.context.dry_run else "application"
        self.logger.info(f"Début de la convergence ({mode}, {report.total} ressources)")

        for resource in self.collection:
            for action in resource.actions:
                self._apply(resource, action, report)

        while self._delayed:
            target_key, action = self._delayed.pop(0)
            self.logger.debug(f"Notification différée: {action} sur {target_key}")
            self._apply(self.collection.lookup(target_key), action, report)

        self.logger.info(f"Convergence terminée: {report.summary()}")
        return report

    def _apply(self, resource: Resource, action: str, report: ConvergeReport):
        if action == 'nothing' or resource.should_skip(self.context):
            return

        try:
            updated = resource.run_action(action, self.context)
        except ResourceError:
            self.logger.error(f"Échec de {resource.key} (action {action})")
            raise

        if not updated:
            return

        report.record(resource, action)
        for notification in resource.notifications:
            if notification.timing == 'immediately':
                self.logger.debug(f"Notification immédiate: {notification.action} sur {notification.target}")
                self._apply(self.collection.lookup(notification.target), notification.action, report)
            else:
                entry: Tuple[str, str] = (notification.target, notification.action)
                if entry not in self._delayed:
                    self._delayed.append(entry)
