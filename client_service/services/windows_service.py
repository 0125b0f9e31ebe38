"""
Service Windows pour chef-client

Le service est enregistré par le service_manager.rb livré avec chef.
Il n'est réinstallé que si sa configuration dans le gestionnaire de
services Windows diffère de celle attendue.
"""

import glob
import os
import sys
from typing import Any, Dict

from ..core.config import ConfigurationError
from ..resources import Converger, Execute, ResourceCollection, ResourceError
from .base_service import BaseService, SERVICE_RESOURCE

# Import conditionnel pour Windows
if sys.platform == "win32":
    import win32service
else:
    win32service = None


INSTALL_EXECUTE = "install chef-client Windows Service"
UNINSTALL_EXECUTE = "uninstall chef-client Windows Service"

# Constantes du gestionnaire de services Windows
SERVICE_WIN32_OWN_PROCESS = 0x10
SERVICE_INTERACTIVE_PROCESS = 0x100

START_TYPES = {
    0: "boot start",
    1: "system start",
    2: "auto start",
    3: "demand start",
    4: "disabled",
}

ERROR_CONTROLS = {
    0: "ignore",
    1: "normal",
    2: "severe",
    3: "critical",
}


def _windows_path(path: str) -> str:
    return path.replace('/', '\\')


def describe_service_type(service_type: int) -> str:
    """Traduit le type de service ('own process, interactive')"""
    parts = []
    if service_type & SERVICE_WIN32_OWN_PROCESS:
        parts.append("own process")
    else:
        parts.append("share process")
    if service_type & SERVICE_INTERACTIVE_PROCESS:
        parts.append("interactive")
    return ", ".join(parts)


def config_from_query(raw) -> Dict[str, Any]:
    """
    Convertit le tuple de QueryServiceConfig en dictionnaire comparable

    Args:
        raw: (type, démarrage, contrôle d'erreur, binaire, groupe, tag,
              dépendances, compte, nom affiché)
    """
    (service_type, start_type, error_control, binary_path, load_order_group,
     tag_id, dependencies, start_name, display_name) = raw
    return {
        'service_type': describe_service_type(service_type),
        'start_type': START_TYPES.get(start_type, str(start_type)),
        'error_control': ERROR_CONTROLS.get(error_control, str(error_control)),
        'binary_path_name': binary_path,
        'load_order_group': load_order_group or "",
        'tag_id': tag_id,
        'dependencies': list(dependencies or []),
        'service_start_name': start_name,
        'display_name': display_name,
    }


def query_service_config(service_name: str) -> Dict[str, Any]:
    """
    Lit la configuration d'un service dans le gestionnaire de services

    Returns:
        dict: Configuration, vide si le service n'existe pas
    """
    if win32service is None:
        return {}

    try:
        scm = win32service.OpenSCManager(None, None, win32service.SC_MANAGER_CONNECT)
        try:
            handle = win32service.OpenService(scm, service_name, win32service.SERVICE_QUERY_CONFIG)
            try:
                raw = win32service.QueryServiceConfig(handle)
            finally:
                win32service.CloseServiceHandle(handle)
        finally:
            win32service.CloseServiceHandle(scm)
    except win32service.error:
        # Le service n'existe pas encore
        return {}

    return config_from_query(raw)


class WindowsService(BaseService):
    init_style = 'win-service'
    provider_name = 'windows'

    @property
    def gems_path(self) -> str:
        """
        Répertoire des gems de l'installation embarquée de chef
        """
        if self.attributes.get('gems_path'):
            return self.attributes['gems_path']

        embedded = self.attributes['embedded_dir']
        candidates = sorted(glob.glob(os.path.join(embedded, 'lib', 'ruby', 'gems', '*')))
        if candidates:
            return candidates[-1].replace('\\', '/')
        return f"{embedded}/lib/ruby/gems/1.9.1"

    @property
    def chef_gem_dir(self) -> str:
        version = self.node.chef_version
        if not version:
            raise ConfigurationError(
                "Version de chef-client inconnue, impossible de localiser service_manager.rb "
                "(renseignez chef_version dans la section [node])"
            )
        return f"{self.gems_path}/gems/chef-{version}"

    @property
    def service_manager(self) -> str:
        return f"{self.chef_gem_dir}/distro/windows/service_manager.rb"

    @property
    def windows_service_file(self) -> str:
        return f"{self.chef_gem_dir}/lib/chef/application/windows_service.rb"

    @property
    def client_conf_file(self) -> str:
        return f"{self.attributes['conf_dir']}/client.rb"

    @property
    def client_log(self) -> str:
        return f"{self.attributes['log_dir']}/client.log"

    def install_command(self) -> str:
        attrs = self.attributes
        return (
            f"{attrs['ruby_bin']} \"{self.service_manager}\" --action install "
            f"-c {self.client_conf_file} -L {self.client_log} "
            f"-i {attrs['interval']} -s {attrs['splay']}"
        )

    def uninstall_command(self) -> str:
        return f"{self.attributes['ruby_bin']} \"{self.service_manager}\" --action uninstall"

    def expected_service_config(self) -> Dict[str, Any]:
        """
        Configuration que service_manager.rb donne au service
        """
        attrs = self.attributes
        ruby = _windows_path(attrs['ruby_bin']).replace('.exe', '')
        fork = "--fork" if attrs['fork'] else ""
        binary_path = (
            f"\"{ruby}\" \"{_windows_path(self.windows_service_file)}\"  "
            f"-c {_windows_path(self.client_conf_file)} -L {_windows_path(self.client_log)} "
            f"-i {attrs['interval']} -s {attrs['splay']} {fork}"
        )
        return {
            'service_type': "own process, interactive",
            'start_type': "auto start",
            'error_control': "normal",
            'binary_path_name': binary_path,
            'load_order_group': "",
            'tag_id': 0,
            'dependencies': [],
            'service_start_name': "LocalSystem",
            'display_name': "chef-client",
        }

    def service_config_matches(self) -> bool:
        actual = query_service_config(self.service_name)
        expected = self.expected_service_config()
        self.logger.debug(f"actual: {actual}")
        self.logger.debug(f"expected: {expected}")
        return actual == expected

    def declare(self, recipe):
        recipe.execute(
            INSTALL_EXECUTE,
            command=self.install_command(),
            action='nothing',
        ).notifies('restart', SERVICE_RESOURCE)

        recipe.execute(
            UNINSTALL_EXECUTE,
            command=self.uninstall_command(),
            not_if=self.service_config_matches,
        ).notifies('run', f"execute[{INSTALL_EXECUTE}]", 'immediately')

        recipe.service(
            "chef-client",
            provider=self.provider_name,
            supports={'restart': True},
            action=['enable', 'start'],
        )

    def is_installed(self) -> bool:
        return bool(query_service_config(self.service_name))

    def uninstall(self, context) -> bool:
        collection = ResourceCollection()
        collection.add(Execute(UNINSTALL_EXECUTE, command=self.uninstall_command()))
        try:
            if self.is_running(context):
                self.stop_service(context)
            Converger(collection, context).converge()
        except ResourceError as e:
            self.logger.error(f"❌ Erreur désinstallation service Windows: {e}")
            return False

        self.logger.info(f"✅ Service Windows '{self.service_name}' désinstallé")
        return True
