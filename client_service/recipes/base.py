"""
Contexte de compilation des recettes

Une Recipe porte le noeud, ses attributs et la collection dans laquelle
les recettes déclarent leurs ressources.
"""

from typing import Any, Dict, Optional

from ..core.logger import get_logger
from ..core.platform import NodeInfo
from ..resources import (
    Directory, Execute, File, Link, Log, RemoteFile, Resource,
    ResourceCollection, Service, Template, User,
)


class Recipe:
    """
    Déclaration de ressources à la manière d'un DSL

    Chaque méthode crée une ressource, l'ajoute à la collection et la
    retourne pour permettre d'y ajouter des notifications.
    """

    def __init__(self, node: NodeInfo, attributes: Dict[str, Any],
                 collection: Optional[ResourceCollection] = None):
        self.node = node
        self.attributes = attributes
        self.collection = collection if collection is not None else ResourceCollection()
        self.logger = get_logger()

    def declare(self, resource: Resource) -> Resource:
        return self.collection.add(resource)

    def directory(self, path: str, **kwargs) -> Directory:
        return self.declare(Directory(path, **kwargs))

    def file(self, path: str, **kwargs) -> File:
        return self.declare(File(path, **kwargs))

    def template(self, path: str, source: str, **kwargs) -> Template:
        return self.declare(Template(path, source, **kwargs))

    def remote_file(self, path: str, source: str, **kwargs) -> RemoteFile:
        return self.declare(RemoteFile(path, source, **kwargs))

    def link(self, path: str, to: str, **kwargs) -> Link:
        return self.declare(Link(path, to, **kwargs))

    def user(self, username: str, **kwargs) -> User:
        return self.declare(User(username, **kwargs))

    def execute(self, name: str, **kwargs) -> Execute:
        return self.declare(Execute(name, **kwargs))

    def service(self, name: str, **kwargs) -> Service:
        return self.declare(Service(name, **kwargs))

    def log(self, message: str, **kwargs) -> Log:
        return self.declare(Log(message, **kwargs))
