"""
Localisation de l'exécutable chef-client

L'exécutable est cherché, dans l'ordre :
- au chemin donné par l'attribut 'bin'
- dans une liste de répertoires usuels
- dans le PATH du système
"""

import glob
import os
import re
import shutil
import subprocess
from typing import Optional, List

from .logger import get_logger
from .platform import parse_version


CLIENT_NAME = 'chef-client'

SANE_PATHS = [
    '/usr/local/sbin',
    '/usr/local/bin',
    '/usr/sbin',
    '/usr/bin',
    '/sbin',
    '/bin',
]


class ClientBinaryNotFound(Exception):
    """Levée quand chef-client n'est trouvé dans aucun chemin connu"""

    def __init__(self, searched: List[str]):
        self.searched = searched
        super().__init__(
            "Impossible de localiser l'exécutable chef-client dans les chemins connus. "
            "Définissez le bon chemin via l'attribut chef_client.bin "
            "(section [chef_client] du fichier de configuration)."
        )


def is_usable(path: Optional[str], windows: bool = False) -> bool:
    """
    Vérifie qu'un chemin désigne un exécutable utilisable

    Sous Windows seule l'existence est vérifiée, ailleurs le fichier
    doit être exécutable.
    """
    if not path:
        return False
    if windows:
        return os.path.exists(path)
    return os.path.isfile(path) and os.access(path, os.X_OK)


def search_system_path(name: str = CLIENT_NAME, windows: bool = False,
                       path_env: Optional[str] = None) -> Optional[str]:
    """
    Cherche un exécutable dans le PATH

    Sous Windows, seuls le nom exact et l'extension .exe sont acceptés
    pour ne jamais retenir le wrapper .bat.

    Args:
        name: Nom de l'exécutable
        windows: Recherche à la manière de 'where'
        path_env: Valeur de PATH (par défaut celle de l'environnement)

    Returns:
        str: Chemin trouvé ou None
    """
    if not windows:
        return shutil.which(name, path=path_env)

    path_env = path_env if path_env is not None else os.environ.get('PATH', '')
    for directory in path_env.split(';'):
        if not directory:
            continue
        for candidate in (os.path.join(directory, name), os.path.join(directory, name + '.exe')):
            if os.path.exists(candidate):
                return candidate
    return None


def locate_client_binary(configured: Optional[str], windows: bool = False,
                         sane_paths: Optional[List[str]] = None,
                         path_env: Optional[str] = None) -> str:
    """
    Localise l'exécutable chef-client

    Args:
        configured: Chemin issu des attributs du noeud
        windows: True si le noeud est sous Windows
        sane_paths: Répertoires usuels à parcourir
        path_env: Valeur de PATH à utiliser

    Returns:
        str: Chemin de l'exécutable

    Raises:
        ClientBinaryNotFound: Si aucun chemin ne convient
    """
    logger = get_logger()
    searched = []

    if windows:
        logger.debug("Vérification par existence et recherche 'where' (Windows)")
    else:
        logger.debug("Vérification du bit exécutable et recherche 'which'")

    if configured:
        searched.append(configured)
        if is_usable(configured, windows):
            logger.debug(f"chef-client trouvé via les attributs du noeud: {configured}")
            return configured

    for directory in (SANE_PATHS if sane_paths is None else sane_paths):
        candidate = os.path.join(directory, CLIENT_NAME)
        searched.append(candidate)
        if is_usable(candidate, windows):
            logger.debug(f"chef-client trouvé dans un chemin usuel: {candidate}")
            return candidate

    in_path = search_system_path(CLIENT_NAME, windows, path_env)
    if in_path and is_usable(in_path, windows):
        logger.debug(f"chef-client trouvé dans le PATH système: {in_path}")
        return in_path
    searched.append('PATH')

    raise ClientBinaryNotFound(searched)


def detect_client_version(client_bin: str, interpreter: Optional[str] = None) -> Optional[str]:
    """
    Récupère la version de chef-client ('Chef: 10.14.2' -> '10.14.2')

    Args:
        client_bin: Chemin de l'exécutable
        interpreter: Ruby à utiliser quand client_bin est un script (Windows)

    Returns:
        str: Version ou None si indéterminable
    """
    logger = get_logger()
    try:
        cmd = [client_bin, '--version']
        if interpreter:
            cmd.insert(0, interpreter)
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Impossible de lire la version de chef-client: {e}")
        return None

    match = re.search(r'Chef:\s*([\d.]+)', result.stdout)
    if not match:
        logger.warning(f"Sortie de version inattendue: {result.stdout.strip()!r}")
        return None
    return match.group(1)


def installed_gem_version(embedded_dir: Optional[str]) -> Optional[str]:
    """
    Version du gem chef le plus récent d'une installation embarquée

    Les répertoires lib/ruby/gems/*/gems/chef-X.Y.Z(-plateforme) suffisent
    quand l'exécutable ne peut pas être lancé.
    """
    if not embedded_dir:
        return None

    versions = []
    pattern = os.path.join(embedded_dir, 'lib', 'ruby', 'gems', '*', 'gems', 'chef-[0-9]*')
    for path in glob.glob(pattern):
        match = re.match(r'chef-(\d+(?:\.\d+)*)', os.path.basename(path))
        if match:
            versions.append(match.group(1))

    if not versions:
        return None
    return max(versions, key=parse_version)
