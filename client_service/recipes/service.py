"""
Recette d'installation du service chef-client

Localise chef-client, crée l'utilisateur et les répertoires de travail
puis délègue au style d'init du noeud la déclaration du service.
"""

from typing import Any, Dict, Tuple

from ..core.attributes import fork_supported, root_group
from ..core.binary import detect_client_version, installed_gem_version, locate_client_binary
from ..core.logger import get_logger
from ..core.platform import NodeInfo
from ..services import BaseService, get_service_style
from .base import Recipe


DIRECTORY_ATTRIBUTES = ('conf_dir', 'run_path', 'cache_path', 'backup_path', 'log_dir')


def prepare_client(node: NodeInfo, attributes: Dict[str, Any], fork_overridden: bool = False) -> str:
    """
    Localise chef-client et complète les attributs qui en dépendent

    Args:
        node: Noeud courant (chef_version complétée si inconnue)
        attributes: Attributs chef_client (bin et fork mis à jour)
        fork_overridden: True si 'fork' vient de la configuration

    Returns:
        str: Chemin de l'exécutable

    Raises:
        ClientBinaryNotFound: Si chef-client est introuvable
    """
    logger = get_logger()

    client_bin = locate_client_binary(attributes.get('bin'), windows=node.is_windows)
    attributes['bin'] = client_bin

    if not node.chef_version:
        if node.is_windows:
            # chef-client n'est qu'un script ruby sous Windows
            node.chef_version = (detect_client_version(client_bin, attributes.get('ruby_bin'))
                                 or installed_gem_version(attributes.get('embedded_dir')))
        else:
            node.chef_version = detect_client_version(client_bin)
        if node.chef_version:
            logger.debug(f"Version de chef-client détectée: {node.chef_version}")

    if not fork_overridden:
        attributes['fork'] = fork_supported(node.chef_version)

    return client_bin


def declare_directories(recipe: Recipe):
    """
    Déclare les répertoires de travail de chef-client (attributs non nuls)
    """
    group = root_group(recipe.node)
    seen = set()
    for key in DIRECTORY_ATTRIBUTES:
        path = recipe.attributes.get(key)
        if not path or path in seen:
            continue
        seen.add(path)
        recipe.directory(path, owner="root", group=group, mode=0o755, recursive=True)


def compile_service_recipe(node: NodeInfo, attributes: Dict[str, Any],
                           fork_overridden: bool = False) -> Tuple[Recipe, BaseService]:
    """
    Compile la recette de service

    Args:
        node: Noeud courant
        attributes: Attributs chef_client effectifs
        fork_overridden: True si 'fork' vient de la configuration

    Returns:
        tuple: (recette compilée, style de service retenu)
    """
    logger = get_logger()
    prepare_client(node, attributes, fork_overridden)

    recipe = Recipe(node, attributes)

    if not node.is_windows:
        recipe.user("chef", system=True, shell="/bin/false", home="/var/lib/chef")

    if node.is_windows:
        # Pas de propriétaire root sous Windows
        for key in DIRECTORY_ATTRIBUTES:
            path = attributes.get(key)
            if path and f"directory[{path}]" not in recipe.collection:
                recipe.directory(path, recursive=True)
    else:
        declare_directories(recipe)

    style = get_service_style(attributes.get('init_style'))(node, attributes)
    logger.info(f"Style d'init retenu: {style.init_style} (plateforme {node.platform})")
    style.declare(recipe)

    return recipe, style
