"""
Détection de la plateforme du noeud

Ce module détermine sur quelle plateforme tourne l'outil :
- Nom de la plateforme (ubuntu, centos, mac_os_x, windows...)
- Famille de plateforme (debian, rhel, suse...)
- Version et nom de code LSB
"""

import os
import re
import platform
import subprocess
from typing import Dict, Any, Optional, Tuple


# Famille de chaque plateforme connue
PLATFORM_FAMILIES = {
    'debian': 'debian',
    'ubuntu': 'debian',
    'redhat': 'rhel',
    'centos': 'rhel',
    'scientific': 'rhel',
    'amazon': 'rhel',
    'oracle': 'rhel',
    'fedora': 'fedora',
    'suse': 'suse',
    'arch': 'arch',
    'mac_os_x': 'mac_os_x',
    'mac_os_x_server': 'mac_os_x',
    'freebsd': 'freebsd',
    'openbsd': 'openbsd',
    'windows': 'windows',
    'solaris2': 'solaris2',
    'openindiana': 'solaris2',
    'opensolaris': 'solaris2',
    'nexentacore': 'solaris2',
    'smartos': 'smartos',
}

# Identifiants /etc/os-release qui ne correspondent pas directement
OS_RELEASE_IDS = {
    'rhel': 'redhat',
    'amzn': 'amazon',
    'sles': 'suse',
    'sled': 'suse',
    'opensuse': 'suse',
    'opensuse-leap': 'suse',
    'opensuse-tumbleweed': 'suse',
    'ol': 'oracle',
    'archarm': 'arch',
}

# Fichiers marqueurs quand /etc/os-release est absent
DISTRO_MARKERS = [
    ('/etc/arch-release', 'arch'),
    ('/etc/SuSE-release', 'suse'),
    ('/etc/redhat-release', 'redhat'),
    ('/etc/debian_version', 'debian'),
]


class NodeInfo:
    """
    Description du noeud sur lequel les recettes sont appliquées
    """

    def __init__(self, platform: str, platform_version: str = '',
                 platform_family: Optional[str] = None,
                 lsb_codename: Optional[str] = None,
                 chef_version: Optional[str] = None):
        self.platform = platform
        self.platform_version = platform_version or ''
        self.platform_family = platform_family or PLATFORM_FAMILIES.get(platform, platform)
        self.lsb_codename = lsb_codename
        self.chef_version = chef_version

    @property
    def is_windows(self) -> bool:
        return self.platform == 'windows'

    def version_float(self) -> float:
        """Version de la plateforme sous forme X.Y (comme to_f)"""
        match = re.match(r'(\d+(?:\.\d+)?)', self.platform_version)
        return float(match.group(1)) if match else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'platform_version': self.platform_version,
            'platform_family': self.platform_family,
            'lsb_codename': self.lsb_codename,
            'chef_version': self.chef_version,
        }

    def __repr__(self):
        return f"NodeInfo({self.platform!r}, {self.platform_version!r}, family={self.platform_family!r})"


def parse_key_value_file(path: str) -> Dict[str, str]:
    """
    Lit un fichier de type KEY=value (os-release, lsb-release)

    Args:
        path: Chemin du fichier

    Returns:
        dict: Clés en minuscules, valeurs sans guillemets
    """
    values = {}
    try:
        with open(path, 'r') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#') or '=' not in line:
                    continue
                key, value = line.split('=', 1)
                values[key.lower()] = value.strip().strip('"\'')
    except FileNotFoundError:
        pass
    return values


def _read_first_line(path: str) -> str:
    try:
        with open(path, 'r') as f:
            return f.readline().strip()
    except OSError:
        return ''


def _detect_linux() -> NodeInfo:
    os_release = parse_key_value_file('/etc/os-release')
    lsb_release = parse_key_value_file('/etc/lsb-release')

    name = None
    version = os_release.get('version_id', '')

    if os_release.get('id'):
        os_id = os_release['id'].lower()
        name = OS_RELEASE_IDS.get(os_id, os_id)
        if name.startswith('opensuse'):
            name = 'suse'
    else:
        for marker, marker_name in DISTRO_MARKERS:
            if os.path.exists(marker):
                name = marker_name
                break

    if name == 'redhat' and not os_release.get('id'):
        # CentOS et Scientific partagent /etc/redhat-release
        release = _read_first_line('/etc/redhat-release').lower()
        if release.startswith('centos'):
            name = 'centos'
        elif release.startswith('scientific'):
            name = 'scientific'
        match = re.search(r'release (\d+(?:\.\d+)*)', release)
        if match:
            version = match.group(1)

    if name == 'debian' and not version:
        version = _read_first_line('/etc/debian_version')

    if not version and lsb_release.get('distrib_release'):
        version = lsb_release['distrib_release']

    codename = os_release.get('version_codename') or lsb_release.get('distrib_codename')

    return NodeInfo(name or 'linux', version, lsb_codename=codename)


def _detect_sunos() -> NodeInfo:
    version = platform.release()
    try:
        uname_v = subprocess.run(['uname', '-v'], capture_output=True, text=True).stdout
    except OSError:
        uname_v = ''

    if 'joyent' in uname_v.lower():
        return NodeInfo('smartos', version)

    release = _read_first_line('/etc/release').lower()
    if 'openindiana' in release:
        return NodeInfo('openindiana', version)
    if 'nexenta' in release:
        return NodeInfo('nexentacore', version)
    if 'opensolaris' in release:
        return NodeInfo('opensolaris', version)
    return NodeInfo('solaris2', version)


def detect_node() -> NodeInfo:
    """
    Détecte la plateforme courante

    Returns:
        NodeInfo: Description du noeud
    """
    system = platform.system()

    if system == 'Linux':
        return _detect_linux()
    elif system == 'Darwin':
        return NodeInfo('mac_os_x', platform.mac_ver()[0])
    elif system == 'Windows':
        return NodeInfo('windows', platform.version())
    elif system == 'FreeBSD':
        return NodeInfo('freebsd', platform.release())
    elif system == 'OpenBSD':
        return NodeInfo('openbsd', platform.release())
    elif system == 'SunOS':
        return _detect_sunos()
    else:
        return NodeInfo(system.lower() or 'unknown', platform.release())


def value_for_platform_family(node: NodeInfo, mapping: Dict[Any, Any], default: Any = None) -> Any:
    """
    Sélectionne une valeur selon la famille de plateforme du noeud

    Les clés du dictionnaire sont une famille ou un tuple de familles,
    la clé 'default' sert de repli.

    Args:
        node: Noeud courant
        mapping: Table famille(s) -> valeur
        default: Valeur si aucune clé ne correspond et pas de 'default'

    Returns:
        Valeur correspondante
    """
    for key, value in mapping.items():
        families = key if isinstance(key, (tuple, list)) else (key,)
        if node.platform_family in families:
            return value
    return mapping.get('default', default)


def parse_version(text: Optional[str]) -> Tuple[int, ...]:
    """
    Convertit une version textuelle en tuple d'entiers ('10.14.2' -> (10, 14, 2))
    """
    if not text:
        return ()
    return tuple(int(part) for part in re.findall(r'\d+', str(text)))


def version_at_least(version: Optional[str], minimum: str) -> bool:
    """Compare deux versions, une version inconnue n'est jamais suffisante"""
    parsed = parse_version(version)
    if not parsed:
        return False
    wanted = parse_version(minimum)
    width = max(len(parsed), len(wanted))
    return parsed + (0,) * (width - len(parsed)) >= wanted + (0,) * (width - len(wanted))
