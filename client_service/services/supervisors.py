"""
Superviseurs de processus : runit, bluepill et daemontools

runit et daemontools utilisent un répertoire de service (script run et
log/run) relié par un lien symbolique au répertoire surveillé.
"""

import os

from ..core.attributes import root_group
from .base_service import BaseService, SERVICE_RESOURCE


class SupervisedDirectoryService(BaseService):
    """
    Répertoire de service commun à runit et daemontools
    """

    template_dir = None

    @property
    def sv_path(self) -> str:
        return os.path.join(self.attributes['sv_dir'], self.service_name)

    @property
    def link_path(self) -> str:
        return os.path.join(self.attributes['service_dir'], self.service_name)

    def provider_options(self):
        return {'service_dir': self.attributes['service_dir']}

    def declare_service_directory(self, recipe):
        group = root_group(self.node)
        variables = {'client_bin': self.client_bin}

        recipe.directory(self.sv_path, owner="root", group=group, mode=0o755, recursive=True)
        recipe.directory(os.path.join(self.sv_path, "log"), owner="root", group=group, mode=0o755)
        recipe.directory(os.path.join(self.sv_path, "log", "main"), owner="root", group=group, mode=0o755)

        recipe.template(
            os.path.join(self.sv_path, "run"),
            source=f"{self.template_dir}/chef-client-run.j2",
            mode=0o755,
            variables=variables,
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.template(
            os.path.join(self.sv_path, "log", "run"),
            source=f"{self.template_dir}/chef-client-log-run.j2",
            mode=0o755,
            variables=variables,
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.directory(self.attributes['service_dir'], mode=0o755, recursive=True)
        recipe.link(self.link_path, to=self.sv_path)


class RunitService(SupervisedDirectoryService):
    init_style = 'runit'
    provider_name = 'runit'
    template_dir = 'runit'

    def declare(self, recipe):
        self.declare_service_directory(recipe)
        recipe.service("chef-client", provider=self.provider_name,
                       provider_options=self.provider_options(), action='start')


class DaemontoolsService(SupervisedDirectoryService):
    init_style = 'daemontools'
    provider_name = 'daemontools'
    template_dir = 'daemontools'

    def declare(self, recipe):
        self.declare_service_directory(recipe)
        recipe.service("chef-client", provider=self.provider_name,
                       provider_options=self.provider_options(), action=['enable', 'start'])


class BluepillService(BaseService):
    """
    Fichier .pill chargé par bluepill
    """

    init_style = 'bluepill'
    provider_name = 'bluepill'

    @property
    def pill_path(self) -> str:
        return os.path.join(self.attributes['bluepill_conf_dir'], f"{self.service_name}.pill")

    def provider_options(self):
        return {'conf_dir': self.attributes['bluepill_conf_dir']}

    def declare(self, recipe):
        group = root_group(self.node)

        # run_path est en général déjà déclaré par la recette principale
        if f"directory[{self.attributes['run_path']}]" not in recipe.collection:
            recipe.directory(self.attributes['run_path'], owner="root", group=group, mode=0o755,
                             recursive=True)
        recipe.directory(self.attributes['bluepill_conf_dir'], owner="root", group=group, mode=0o755,
                         recursive=True)

        recipe.template(
            self.pill_path,
            source="chef-client.pill.j2",
            mode=0o644,
            variables={'client_bin': self.client_bin},
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.service("chef-client", provider=self.provider_name,
                       provider_options=self.provider_options(), action=['enable', 'load', 'start'])
