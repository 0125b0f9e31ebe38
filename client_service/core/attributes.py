"""
Table des attributs par défaut du service chef-client

Les valeurs communes à toutes les plateformes sont complétées par
une entrée spécifique à la plateforme du noeud (style d'init, chemins).
"""

import posixpath
from typing import Dict, Any

from .platform import NodeInfo, parse_version, version_at_least


INIT_STYLES = (
    'init', 'smf', 'upstart', 'arch', 'runit', 'bluepill',
    'daemontools', 'win-service', 'launchd', 'bsd', 'none',
)

# Version à partir de laquelle chef-client supporte --fork
FORK_MIN_VERSION = '10.14'

BASE_DEFAULTS = {
    'interval': 1800,
    'splay': 20,
    'log_dir': '/var/log/chef',
    'log_file': None,
    'log_level': 'info',
    'verbose_logging': True,
    'conf_dir': '/etc/chef',
    'bin': '/usr/bin/chef-client',
    'server_url': 'http://localhost:4000',
    'validation_client_name': 'chef-validator',
    'environment': None,
    'repository_style': None,
    'bluepill_conf_dir': '/etc/bluepill',
    'sv_dir': '/etc/sv',
    'service_dir': '/etc/service',
}

_WINDOWS_CONF_DIR = 'C:/chef'

PLATFORM_DEFAULTS = [
    (('arch',), {
        'init_style': 'arch',
        'run_path': '/var/run/chef',
        'cache_path': '/var/cache/chef',
        'backup_path': '/var/lib/chef',
    }),
    (('debian', 'ubuntu', 'redhat', 'centos', 'fedora', 'suse', 'scientific', 'amazon'), {
        'init_style': 'init',
        'run_path': '/var/run/chef',
        'cache_path': '/var/cache/chef',
        'backup_path': '/var/lib/chef',
    }),
    (('openbsd', 'freebsd'), {
        'init_style': 'bsd',
        'run_path': '/var/run',
        'cache_path': '/var/chef/cache',
        'backup_path': '/var/chef/backup',
    }),
    (('mac_os_x', 'mac_os_x_server'), {
        'init_style': 'launchd',
        'log_dir': '/Library/Logs/Chef',
        # launchd n'utilise pas de fichier pid
        'run_path': None,
        'cache_path': '/Library/Caches/Chef',
        'backup_path': '/Library/Caches/Chef/Backup',
        # "daemon" pour un chef-client permanent (-d -s), "interval" pour
        # une exécution périodique lancée par launchd
        'launchd_mode': 'interval',
    }),
    (('openindiana', 'opensolaris', 'nexentacore', 'solaris2'), {
        'init_style': 'smf',
        'run_path': '/var/run/chef',
        'cache_path': '/var/chef/cache',
        'backup_path': '/var/chef/backup',
        'method_dir': '/lib/svc/method',
        'bin_dir': '/usr/bin',
    }),
    (('smartos',), {
        'init_style': 'smf',
        'run_path': '/var/run/chef',
        'cache_path': '/var/chef/cache',
        'backup_path': '/var/chef/backup',
        'method_dir': '/opt/local/lib/svc/method',
        'bin_dir': '/opt/local/bin',
    }),
    (('windows',), {
        'init_style': 'win-service',
        'conf_dir': _WINDOWS_CONF_DIR,
        'run_path': posixpath.join(_WINDOWS_CONF_DIR, 'run'),
        'cache_path': posixpath.join(_WINDOWS_CONF_DIR, 'cache'),
        'backup_path': posixpath.join(_WINDOWS_CONF_DIR, 'backup'),
        'log_dir': posixpath.join(_WINDOWS_CONF_DIR, 'log'),
        'bin': 'C:/opscode/chef/bin/chef-client',
        # Interpréteur utilisé par service_manager.rb
        'ruby_bin': 'C:/opscode/chef/embedded/bin/ruby.exe',
        'embedded_dir': 'C:/opscode/chef/embedded',
    }),
]

FALLBACK_DEFAULTS = {
    'init_style': 'none',
    'run_path': '/var/run',
    'cache_path': '/var/chef/cache',
    'backup_path': '/var/chef/backup',
}


def platform_defaults(platform_name: str) -> Dict[str, Any]:
    """
    Retourne l'entrée spécifique à une plateforme

    Args:
        platform_name: Nom de la plateforme (ex: 'ubuntu')

    Returns:
        dict: Attributs propres à la plateforme
    """
    for platforms, values in PLATFORM_DEFAULTS:
        if platform_name in platforms:
            return dict(values)
    return dict(FALLBACK_DEFAULTS)


def default_attributes(node: NodeInfo) -> Dict[str, Any]:
    """
    Construit les attributs par défaut pour un noeud

    Args:
        node: Noeud courant

    Returns:
        dict: Attributs complets (communs + plateforme)
    """
    attributes = dict(BASE_DEFAULTS)
    attributes.update(platform_defaults(node.platform))
    attributes['fork'] = fork_supported(node.chef_version)
    return attributes


def fork_supported(chef_version) -> bool:
    """--fork est supporté à partir de 10.14, une version inconnue est supposée récente"""
    if not parse_version(chef_version):
        return True
    return version_at_least(chef_version, FORK_MIN_VERSION)


def root_group(node: NodeInfo) -> str:
    """Groupe propriétaire des fichiers système selon la famille"""
    if node.platform_family in ('openbsd', 'freebsd', 'mac_os_x'):
        return 'wheel'
    return 'root'
