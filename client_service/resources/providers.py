"""
Fournisseurs de services : traduction des actions (enable, start...)
en commandes du gestionnaire de services natif de chaque plateforme
"""

import glob
import os
import re
import subprocess
from typing import Any, Dict, List, Optional

from .base import ResourceError


class ServiceProvider:
    """
    Fournisseur de base

    Les sous-classes retournent la commande de chaque action, ou None
    quand le gestionnaire n'a pas d'équivalent.
    """

    name = None

    def __init__(self, service_name: str, options: Optional[Dict[str, Any]] = None):
        self.service_name = service_name
        self.options = options or {}

    def start_command(self) -> Optional[List[str]]:
        return None

    def stop_command(self) -> Optional[List[str]]:
        return None

    def restart_command(self) -> Optional[List[str]]:
        return None

    def status_command(self) -> Optional[List[str]]:
        return None

    def enable_command(self) -> Optional[List[str]]:
        return None

    def disable_command(self) -> Optional[List[str]]:
        return None

    def load_command(self) -> Optional[List[str]]:
        return None

    def enabled_command(self) -> Optional[List[str]]:
        return None

    def parse_running(self, result) -> bool:
        return result.returncode == 0

    def parse_enabled(self, result) -> bool:
        return result.returncode == 0

    def _query(self, context, cmd: List[str]):
        """
        Interroge le gestionnaire de services (même en mode simulation)
        """
        try:
            return context.query(cmd)
        except (OSError, subprocess.TimeoutExpired) as e:
            context.logger.debug(f"Gestionnaire de {self.service_name} indisponible: {e}")
            return None

    def is_running(self, context) -> bool:
        cmd = self.status_command()
        if cmd is None:
            return False
        result = self._query(context, cmd)
        return result is not None and self.parse_running(result)

    def is_enabled(self, context) -> Optional[bool]:
        """
        Activation au démarrage, None quand elle ne peut pas être vérifiée
        """
        cmd = self.enabled_command()
        if cmd is None:
            return None
        result = self._query(context, cmd)
        if result is None:
            return None
        return self.parse_enabled(result)

    def _run(self, context, action: str, cmd: Optional[List[str]]) -> bool:
        if cmd is None:
            context.logger.debug(f"Action '{action}' sans équivalent pour le fournisseur {self.name}")
            return False
        context.execute(cmd)
        return True

    def start(self, context) -> bool:
        return self._run(context, 'start', self.start_command())

    def stop(self, context) -> bool:
        return self._run(context, 'stop', self.stop_command())

    def restart(self, context) -> bool:
        cmd = self.restart_command()
        if cmd is None:
            if self.is_running(context):
                self.stop(context)
            return self.start(context)
        return self._run(context, 'restart', cmd)

    def enable(self, context) -> bool:
        return self._run(context, 'enable', self.enable_command())

    def disable(self, context) -> bool:
        return self._run(context, 'disable', self.disable_command())

    def load(self, context) -> bool:
        return self._run(context, 'load', self.load_command())


class InitScriptProvider(ServiceProvider):
    """Script d'init SysV sans gestion de l'activation"""

    name = 'init'
    init_dir = '/etc/init.d'

    @property
    def script(self) -> str:
        return os.path.join(self.options.get('init_dir', self.init_dir), self.service_name)

    def start_command(self):
        return [self.script, 'start']

    def stop_command(self):
        return [self.script, 'stop']

    def restart_command(self):
        return [self.script, 'restart']

    def status_command(self):
        return [self.script, 'status']


class DebianInitProvider(InitScriptProvider):
    """Activation par les liens S??<service> des répertoires /etc/rc?.d"""

    name = 'debian'

    def is_enabled(self, context) -> bool:
        rc_root = self.options.get('rc_root', '/etc')
        pattern = os.path.join(rc_root, 'rc[2345].d', f"S[0-9][0-9]{self.service_name}")
        return bool(glob.glob(pattern))

    def enable_command(self):
        return ['update-rc.d', self.service_name, 'defaults']

    def disable_command(self):
        return ['update-rc.d', '-f', self.service_name, 'remove']


class RedhatInitProvider(InitScriptProvider):
    name = 'redhat'

    def start_command(self):
        return ['/sbin/service', self.service_name, 'start']

    def stop_command(self):
        return ['/sbin/service', self.service_name, 'stop']

    def restart_command(self):
        return ['/sbin/service', self.service_name, 'restart']

    def status_command(self):
        return ['/sbin/service', self.service_name, 'status']

    def enable_command(self):
        return ['/sbin/chkconfig', self.service_name, 'on']

    def disable_command(self):
        return ['/sbin/chkconfig', self.service_name, 'off']

    def enabled_command(self):
        return ['/sbin/chkconfig', '--list', self.service_name]

    def parse_enabled(self, result) -> bool:
        return result.returncode == 0 and bool(re.search(r'\b[2-5]:on\b', result.stdout))


class SuseInitProvider(InitScriptProvider):
    name = 'suse'

    def enable_command(self):
        return ['/sbin/insserv', '-d', self.script]

    def disable_command(self):
        return ['/sbin/insserv', '-r', self.script]

    def enabled_command(self):
        return ['/sbin/chkconfig', '--check', self.service_name]


class ArchProvider(InitScriptProvider):
    """
    Scripts /etc/rc.d d'Arch : l'activation passe par le tableau
    DAEMONS de /etc/rc.conf
    """

    name = 'arch'
    init_dir = '/etc/rc.d'
    daemons_pattern = re.compile(r'^DAEMONS=\((.*)\)', re.MULTILINE)

    @property
    def rc_conf(self) -> str:
        return self.options.get('rc_conf', '/etc/rc.conf')

    def status_command(self):
        return None

    def is_running(self, context) -> bool:
        return os.path.exists(os.path.join('/run/daemons', self.service_name))

    def _read_daemons(self):
        try:
            with open(self.rc_conf, 'r') as f:
                content = f.read()
        except FileNotFoundError as e:
            raise ResourceError(f"{self.rc_conf} introuvable, activation impossible") from e

        match = self.daemons_pattern.search(content)
        if not match:
            raise ResourceError(f"Aucune ligne DAEMONS=(...) dans {self.rc_conf}")
        return content, match.group(1).split()

    def _write_daemons(self, context, content: str, daemons: List[str]):
        if context.dry_run:
            return
        new_content = self.daemons_pattern.sub(f"DAEMONS=({' '.join(daemons)})", content, count=1)
        with open(self.rc_conf, 'w') as f:
            f.write(new_content)

    def enable(self, context) -> bool:
        content, daemons = self._read_daemons()
        if self.service_name in daemons:
            return False
        context.logger.info(f"Ajout de {self.service_name} à DAEMONS dans {self.rc_conf}")
        self._write_daemons(context, content, daemons + [self.service_name])
        return True

    def disable(self, context) -> bool:
        content, daemons = self._read_daemons()
        kept = [d for d in daemons if d.lstrip('!@') != self.service_name]
        if kept == daemons:
            return False
        context.logger.info(f"Retrait de {self.service_name} de DAEMONS dans {self.rc_conf}")
        self._write_daemons(context, content, kept)
        return True


class UpstartProvider(ServiceProvider):
    """Jobs upstart : un job est actif dès que son fichier existe"""

    name = 'upstart'

    def start_command(self):
        return ['/sbin/start', self.service_name]

    def stop_command(self):
        return ['/sbin/stop', self.service_name]

    def restart_command(self):
        return ['/sbin/restart', self.service_name]

    def status_command(self):
        return ['/sbin/status', self.service_name]

    def parse_running(self, result) -> bool:
        return 'start/running' in result.stdout


class SolarisProvider(ServiceProvider):
    name = 'solaris'

    def start_command(self):
        return ['svcadm', 'enable', '-s', self.service_name]

    def stop_command(self):
        return ['svcadm', 'disable', '-s', self.service_name]

    def restart_command(self):
        return ['svcadm', 'restart', self.service_name]

    def status_command(self):
        return ['svcs', '-H', '-o', 'state', self.service_name]

    def enable_command(self):
        return self.start_command()

    def disable_command(self):
        return self.stop_command()

    def parse_running(self, result) -> bool:
        return result.stdout.strip() == 'online'

    def enabled_command(self):
        return self.status_command()

    def parse_enabled(self, result) -> bool:
        return result.returncode == 0 and result.stdout.strip() not in ('', 'disabled')


class MacosxProvider(ServiceProvider):
    name = 'macosx'

    @property
    def plist(self) -> str:
        return self.options.get('plist', f"/Library/LaunchDaemons/{self.service_name}.plist")

    def start_command(self):
        return ['launchctl', 'load', '-w', self.plist]

    def stop_command(self):
        return ['launchctl', 'unload', '-w', self.plist]

    def status_command(self):
        return ['launchctl', 'list', self.service_name]


class WindowsProvider(ServiceProvider):
    name = 'windows'

    def start_command(self):
        return ['sc', 'start', self.service_name]

    def stop_command(self):
        return ['sc', 'stop', self.service_name]

    def status_command(self):
        return ['sc', 'query', self.service_name]

    def enable_command(self):
        return ['sc', 'config', self.service_name, 'start=', 'auto']

    def disable_command(self):
        return ['sc', 'config', self.service_name, 'start=', 'disabled']

    def parse_running(self, result) -> bool:
        return result.returncode == 0 and 'RUNNING' in result.stdout

    def enabled_command(self):
        return ['sc', 'qc', self.service_name]

    def parse_enabled(self, result) -> bool:
        return result.returncode == 0 and 'AUTO_START' in result.stdout


class RunitProvider(ServiceProvider):
    """Services runit : l'activation est le lien dans le répertoire de services"""

    name = 'runit'

    @property
    def target(self) -> str:
        return os.path.join(self.options.get('service_dir', '/etc/service'), self.service_name)

    def start_command(self):
        return ['sv', 'start', self.target]

    def stop_command(self):
        return ['sv', 'stop', self.target]

    def restart_command(self):
        return ['sv', 'restart', self.target]

    def status_command(self):
        return ['sv', 'status', self.target]

    def parse_running(self, result) -> bool:
        return result.stdout.startswith('run:')


class BluepillProvider(ServiceProvider):
    name = 'bluepill'

    @property
    def pill(self) -> str:
        return os.path.join(self.options.get('conf_dir', '/etc/bluepill'), f"{self.service_name}.pill")

    def load_command(self):
        return ['bluepill', 'load', self.pill]

    def start_command(self):
        return ['bluepill', self.service_name, 'start']

    def stop_command(self):
        return ['bluepill', self.service_name, 'stop']

    def restart_command(self):
        return ['bluepill', self.service_name, 'restart']

    def status_command(self):
        return ['bluepill', self.service_name, 'status']

    def parse_running(self, result) -> bool:
        return result.returncode == 0 and '(pid:' in result.stdout and 'up' in result.stdout


class DaemontoolsProvider(ServiceProvider):
    name = 'daemontools'

    @property
    def target(self) -> str:
        return os.path.join(self.options.get('service_dir', '/etc/service'), self.service_name)

    def start_command(self):
        return ['svc', '-u', self.target]

    def stop_command(self):
        return ['svc', '-d', self.target]

    def restart_command(self):
        return ['svc', '-t', self.target]

    def status_command(self):
        return ['svstat', self.target]

    def parse_running(self, result) -> bool:
        return ': up' in result.stdout


PROVIDERS = {
    cls.name: cls
    for cls in (
        InitScriptProvider, DebianInitProvider, RedhatInitProvider, SuseInitProvider,
        ArchProvider, UpstartProvider, SolarisProvider, MacosxProvider, WindowsProvider,
        RunitProvider, BluepillProvider, DaemontoolsProvider,
    )
}

# Fournisseur par défaut selon la famille de plateforme
FAMILY_PROVIDERS = {
    'debian': 'debian',
    'rhel': 'redhat',
    'fedora': 'redhat',
    'suse': 'suse',
    'arch': 'arch',
    'mac_os_x': 'macosx',
    'windows': 'windows',
    'solaris2': 'solaris',
    'smartos': 'solaris',
}


def get_provider(name: Optional[str], service_name: str, platform_family: Optional[str] = None,
                 options: Optional[Dict[str, Any]] = None) -> ServiceProvider:
    """
    Instancie le fournisseur demandé, ou celui de la famille de plateforme

    Raises:
        ResourceError: Si le fournisseur est inconnu
    """
    provider_name = name or FAMILY_PROVIDERS.get(platform_family, 'init')
    try:
        provider_class = PROVIDERS[provider_name]
    except KeyError:
        raise ResourceError(f"Fournisseur de service inconnu '{provider_name}'") from None
    return provider_class(service_name, options)
