"""
Service macOS (launchd) pour chef-client

Deux modes selon l'attribut launchd_mode :
- interval : launchd relance chef-client toutes les 'interval' secondes
- daemon : chef-client reste actif (-d -s) et launchd le maintient en vie
"""

import os
import plistlib
from typing import Any, Dict

from ..core.platform import version_at_least
from .base_service import BaseService


LAUNCHD_LABEL = "com.opscode.chef-client"
LAUNCHD_MIN_VERSION = "0.10.10"


class MacOSLaunchdService(BaseService):
    init_style = 'launchd'
    provider_name = 'macosx'
    service_name = LAUNCHD_LABEL

    @property
    def plist_path(self) -> str:
        return f"/Library/LaunchDaemons/{LAUNCHD_LABEL}.plist"

    def provider_options(self):
        return {'plist': self.plist_path}

    def is_supported(self) -> bool:
        """Le fournisseur macOS n'existe qu'à partir de chef 0.10.10"""
        return version_at_least(self.node.chef_version, LAUNCHD_MIN_VERSION)

    def get_plist_content(self) -> Dict[str, Any]:
        """
        Génère le contenu du fichier plist pour launchd

        Returns:
            dict: Contenu du fichier .plist
        """
        attrs = self.attributes
        log_file = os.path.join(attrs['log_dir'], "client.log")

        plist_data = {
            'Label': LAUNCHD_LABEL,
            'RunAtLoad': True,
            'StandardOutPath': log_file,
            'StandardErrorPath': log_file,
            'ServiceDescription': "Chef Client",
        }

        if attrs.get('launchd_mode') == 'daemon':
            plist_data['ProgramArguments'] = [
                self.client_bin,
                '-d',
                '-s', str(attrs['splay']),
            ]
            plist_data['KeepAlive'] = True
        else:
            plist_data['ProgramArguments'] = [self.client_bin]
            plist_data['StartInterval'] = int(attrs['interval'])

        return plist_data

    def declare(self, recipe):
        if not self.is_supported():
            recipe.log(
                "Le fournisseur de service macOS n'est supporté qu'avec chef >= 0.10.10",
                level='warning',
            )
            return

        recipe.file(
            self.plist_path,
            content=plistlib.dumps(self.get_plist_content()),
            mode=0o644,
        )

        recipe.service(
            "chef-client",
            service_name=LAUNCHD_LABEL,
            provider=self.provider_name,
            provider_options=self.provider_options(),
            action='start',
        )
