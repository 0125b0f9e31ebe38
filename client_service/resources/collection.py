"""
Collection ordonnée des ressources déclarées par les recettes
"""

from collections import OrderedDict
from typing import Iterator, List

from .base import Resource, ResourceError


class ResourceCollection:
    """
    Ressources indexées par leur clé ("type[nom]"), dans l'ordre de déclaration
    """

    def __init__(self):
        self._resources = OrderedDict()

    def add(self, resource: Resource) -> Resource:
        if resource.key in self._resources:
            raise ResourceError(f"Ressource déjà déclarée: {resource.key}")
        self._resources[resource.key] = resource
        return resource

    def lookup(self, key: str) -> Resource:
        try:
            return self._resources[key]
        except KeyError:
            raise ResourceError(f"Ressource introuvable: {key}") from None

    def __contains__(self, key: str) -> bool:
        return key in self._resources

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._resources.values()))

    def __len__(self) -> int:
        return len(self._resources)

    def keys(self) -> List[str]:
        return list(self._resources)

    def of_type(self, resource_type: str) -> List[Resource]:
        return [r for r in self if r.resource_type == resource_type]

    def validate(self):
        """
        Vérifie que toutes les cibles de notification existent

        Raises:
            ResourceError: À la première cible inconnue
        """
        for resource in self:
            for notification in resource.notifications:
                if notification.target not in self._resources:
                    raise ResourceError(
                        f"{resource.key} notifie une ressource inconnue: {notification.target}"
                    )
                target = self._resources[notification.target]
                if notification.action not in target.allowed_actions:
                    raise ResourceError(
                        f"{resource.key} notifie l'action '{notification.action}' "
                        f"invalide pour {target.key}"
                    )

    def describe(self) -> List[dict]:
        return [resource.describe() for resource in self]
