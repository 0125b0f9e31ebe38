"""
Classe de base des ressources déclaratives

Une ressource décrit un état voulu (fichier présent, service démarré...)
et sait l'appliquer de façon idempotente : chaque action retourne True
seulement si quelque chose a changé.
"""

from typing import Any, Callable, List, Optional, Union


TIMINGS = ('delayed', 'immediately')


class ResourceError(Exception):
    """Levée quand une ressource ne peut pas être appliquée"""


class Notification:
    """
    Notification envoyée à une autre ressource quand celle-ci change

    La cible est désignée par sa clé, par exemple "service[chef-client]".
    """

    def __init__(self, action: str, target: str, timing: str = 'delayed'):
        if timing not in TIMINGS:
            raise ResourceError(f"Moment de notification inconnu '{timing}' (valeurs: delayed, immediately)")
        self.action = action
        self.target = target
        self.timing = timing

    def __repr__(self):
        return f"Notification({self.action!r}, {self.target!r}, {self.timing!r})"


Guard = Union[str, Callable[[], Any], None]


class Resource:
    """
    Ressource déclarative de base

    Les sous-classes définissent resource_type, allowed_actions et une
    méthode action_<nom> par action.
    """

    resource_type = 'resource'
    allowed_actions = ('nothing',)
    default_action = 'nothing'

    def __init__(self, name: str, action: Union[str, List[str], None] = None,
                 only_if: Guard = None, not_if: Guard = None,
                 notifies: Optional[List[tuple]] = None):
        """
        Args:
            name: Nom de la ressource (souvent un chemin)
            action: Action ou liste d'actions à appliquer
            only_if: Garde, l'action n'est appliquée que si elle est vraie
            not_if: Garde, l'action est ignorée si elle est vraie
            notifies: Liste de tuples (action, cible[, moment])
        """
        self.name = name
        self.actions = self._normalize_actions(action)
        self.only_if = only_if
        self.not_if = not_if
        self.notifications = []

        for notification in notifies or []:
            self.notifies(*notification)

    def _normalize_actions(self, action) -> List[str]:
        if action is None:
            actions = [self.default_action]
        elif isinstance(action, str):
            actions = [action]
        else:
            actions = list(action)

        for name in actions:
            if name not in self.allowed_actions:
                raise ResourceError(
                    f"Action '{name}' invalide pour {self.resource_type} "
                    f"(valeurs: {', '.join(self.allowed_actions)})"
                )
        return actions

    @property
    def key(self) -> str:
        return f"{self.resource_type}[{self.name}]"

    def notifies(self, action: str, target: str, timing: str = 'delayed') -> 'Resource':
        self.notifications.append(Notification(action, target, timing))
        return self

    def _evaluate_guard(self, guard: Guard, context) -> bool:
        if callable(guard):
            return bool(guard())
        return context.query(guard, shell=True).returncode == 0

    def should_skip(self, context) -> bool:
        """
        Évalue les gardes only_if / not_if

        Returns:
            bool: True si l'action doit être ignorée
        """
        if self.only_if is not None and not self._evaluate_guard(self.only_if, context):
            context.logger.debug(f"{self.key} ignorée (only_if)")
            return True
        if self.not_if is not None and self._evaluate_guard(self.not_if, context):
            context.logger.debug(f"{self.key} ignorée (not_if)")
            return True
        return False

    def run_action(self, action: str, context) -> bool:
        """
        Applique une action

        Args:
            action: Nom de l'action
            context: RunContext de l'exécution

        Returns:
            bool: True si la ressource a été modifiée
        """
        if action not in self.allowed_actions:
            raise ResourceError(f"Action '{action}' invalide pour {self.key}")
        if action == 'nothing':
            return False
        return getattr(self, f"action_{action}")(context)

    def describe(self) -> dict:
        """Représentation sérialisable de la ressource (affichage, tests)"""
        return {
            'resource': self.key,
            'actions': list(self.actions),
            'notifies': [(n.action, n.target, n.timing) for n in self.notifications],
        }

    def __repr__(self):
        return f"<{self.key} actions={self.actions}>"
