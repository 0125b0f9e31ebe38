"""
Service SMF (Solaris, OpenIndiana, SmartOS)

Le script de méthode est installé dans method_dir, le manifeste est
rendu dans le cache puis importé avec svccfg.
"""

import os

from .base_service import BaseService, SERVICE_RESOURCE


MANIFEST_EXECUTE = "load chef-client manifest"


class SMFService(BaseService):
    init_style = 'smf'
    provider_name = 'solaris'

    @property
    def method_path(self) -> str:
        return os.path.join(self.attributes['method_dir'], "chef-client")

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.attributes['cache_path'], "chef-client.xml")

    def declare(self, recipe):
        recipe.directory(
            self.attributes['method_dir'],
            owner="root",
            group="bin",
            mode=0o755,
            recursive=True,
        )

        recipe.template(
            self.method_path,
            source="solaris/chef-client.j2",
            owner="root",
            group="root",
            mode=0o755,
        ).notifies('restart', SERVICE_RESOURCE)

        recipe.template(
            self.manifest_path,
            source="solaris/manifest.xml.j2",
            owner="root",
            group="root",
            mode=0o644,
            variables={'method_path': self.method_path},
        ).notifies('run', f"execute[{MANIFEST_EXECUTE}]", 'immediately')

        recipe.execute(
            MANIFEST_EXECUTE,
            command=f"svccfg import {self.manifest_path}",
            action='nothing',
        ).notifies('restart', SERVICE_RESOURCE)

        recipe.service("chef-client", provider=self.provider_name, action=['enable', 'start'])
