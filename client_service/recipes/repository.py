"""
Recette du dépôt de paquets Opscode

Avec repository_style = apt, ajoute la clé et la source APT d'Opscode.
"""

import os
from typing import Optional

from ..core.config import ConfigurationError
from .base import Recipe


APT_URI = "http://apt.opscode.com"
APT_KEY_URL = "http://apt.opscode.com/packages@opscode.com.gpg.key"
APT_COMPONENTS = ["main"]
SOURCES_LIST = "/etc/apt/sources.list.d/opscode.list"

KEY_EXECUTE = "add opscode apt key"
UPDATE_EXECUTE = "apt-get update"


def apt_source_line(codename: str) -> str:
    return f"deb {APT_URI} {codename}-0.10 {' '.join(APT_COMPONENTS)}\n"


def declare_apt_repository(recipe: Recipe):
    codename: Optional[str] = recipe.node.lsb_codename
    if not codename:
        raise ConfigurationError(
            "Nom de code LSB inconnu, impossible de configurer le dépôt APT "
            "(renseignez lsb_codename dans la section [node])"
        )

    cache_path = recipe.attributes['cache_path']
    key_path = os.path.join(cache_path, "opscode.gpg.key")

    if f"directory[{cache_path}]" not in recipe.collection:
        recipe.directory(cache_path, mode=0o755, recursive=True)

    recipe.remote_file(key_path, source=APT_KEY_URL, mode=0o644).notifies(
        'run', f"execute[{KEY_EXECUTE}]", 'immediately')

    recipe.execute(KEY_EXECUTE, command=f"apt-key add {key_path}", action='nothing')

    recipe.file(SOURCES_LIST, content=apt_source_line(codename), mode=0o644).notifies(
        'run', f"execute[{UPDATE_EXECUTE}]", 'immediately')

    recipe.execute(UPDATE_EXECUTE, command="apt-get update", action='nothing')


def compile_repository_recipe(recipe: Recipe) -> Recipe:
    """
    Déclare le dépôt selon repository_style (rien si non défini)
    """
    style = recipe.attributes.get('repository_style')
    if style == 'apt':
        declare_apt_repository(recipe)
    elif style:
        recipe.logger.warning(f"Style de dépôt inconnu '{style}', aucun dépôt configuré")
    return recipe
