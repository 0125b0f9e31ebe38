"""
Styles de service à base de scripts d'init : SysV (init) et Arch (rc.d)
"""

from ..core.config import ConfigurationError
from ..core.platform import value_for_platform_family
from .base_service import BaseService, SERVICE_RESOURCE


# (répertoire des templates, répertoire du fichier de paramètres) par famille
INIT_LAYOUTS = {
    'debian': ('debian', 'default'),
    'fedora': ('redhat', 'sysconfig'),
    'rhel': ('redhat', 'sysconfig'),
    'suse': ('suse', 'sysconfig'),
}

INIT_PROVIDERS = {
    'debian': 'debian',
    ('fedora', 'rhel'): 'redhat',
    'suse': 'suse',
}


class SysVInitService(BaseService):
    """
    Script /etc/init.d/chef-client et fichier de paramètres
    (/etc/default ou /etc/sysconfig) selon la distribution
    """

    init_style = 'init'

    @property
    def provider_name(self) -> str:
        return value_for_platform_family(self.node, INIT_PROVIDERS, 'init')

    def layout(self):
        layout = value_for_platform_family(self.node, INIT_LAYOUTS)
        if layout is None:
            raise ConfigurationError(
                f"Le style 'init' n'est pas supporté pour la famille '{self.node.platform_family}'"
            )
        return layout

    def declare(self, recipe):
        dist_dir, conf_dir = self.layout()

        recipe.template(
            "/etc/init.d/chef-client",
            source=f"{dist_dir}/init.d/chef-client.j2",
            mode=0o755,
            variables={'client_bin': self.client_bin, 'fork': self.attributes['fork']},
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.template(
            f"/etc/{conf_dir}/chef-client",
            source=f"{dist_dir}/{conf_dir}/chef-client.j2",
            mode=0o644,
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.service(
            "chef-client",
            provider=self.provider_name,
            supports={'status': True, 'restart': True},
            action='enable',
        )


class ArchService(BaseService):
    """
    Script /etc/rc.d/chef-client et /etc/conf.d/chef-client.conf
    """

    init_style = 'arch'
    provider_name = 'arch'

    def declare(self, recipe):
        recipe.template(
            "/etc/rc.d/chef-client",
            source="rc.d/chef-client.j2",
            mode=0o755,
            variables={'client_bin': self.client_bin},
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.template(
            "/etc/conf.d/chef-client.conf",
            source="conf.d/chef-client.conf.j2",
            mode=0o644,
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.service("chef-client", provider=self.provider_name, action=['enable', 'start'])
