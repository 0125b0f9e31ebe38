"""
Job upstart (Ubuntu)

Le script SysV éventuellement présent est arrêté et désactivé pour
qu'un seul superviseur gère chef-client.
"""

from .base_service import BaseService, SERVICE_RESOURCE


class UpstartService(BaseService):
    init_style = 'upstart'
    provider_name = 'upstart'

    def job_location(self):
        """
        Répertoire et suffixe des jobs : /etc/event.d sans suffixe
        pour Ubuntu 8.04 à 9.04, /etc/init/*.conf sinon
        """
        if self.node.platform == 'ubuntu' and 8.04 <= self.node.version_float() <= 9.04:
            return "/etc/event.d", ""
        return "/etc/init", ".conf"

    def declare(self, recipe):
        job_dir, job_suffix = self.job_location()

        recipe.template(
            f"{job_dir}/chef-client{job_suffix}",
            source="debian/init/chef-client.conf.j2",
            mode=0o644,
            variables={'client_bin': self.client_bin, 'fork': self.attributes['fork']},
        ).notifies('restart', SERVICE_RESOURCE, 'delayed')

        recipe.service(
            "chef-client",
            provider=self.provider_name,
            supports={'status': True, 'restart': True},
            action=['enable', 'start'],
        )

        recipe.service(
            "chef-client init",
            service_name="chef-client",
            provider='debian',
            supports={'status': True},
            action=['stop', 'disable'],
        )
