"""
Ressource service : état voulu d'un service géré par un fournisseur
"""

from typing import Any, Dict, Optional

from .base import Resource
from .providers import ServiceProvider, get_provider


class Service(Resource):
    """
    Service système

    enable, disable, start et stop ne font rien si le service est déjà
    dans l'état voulu. restart retombe sur stop + start sans support natif.
    """

    resource_type = 'service'
    allowed_actions = ('enable', 'disable', 'start', 'stop', 'restart', 'load', 'nothing')
    default_action = 'nothing'

    def __init__(self, name: str, service_name: Optional[str] = None, provider: Optional[str] = None,
                 supports: Optional[Dict[str, bool]] = None,
                 provider_options: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(name, **kwargs)
        self.service_name = service_name or name
        self.provider = provider
        self.supports = supports or {}
        self.provider_options = provider_options or {}

    def get_provider(self, context) -> ServiceProvider:
        return get_provider(self.provider, self.service_name, context.node.platform_family,
                            self.provider_options)

    def action_enable(self, context) -> bool:
        provider = self.get_provider(context)
        if provider.is_enabled(context):
            context.logger.debug(f"{self.key}: déjà activé")
            return False
        context.logger.info(f"{self.key}: activation au démarrage")
        return provider.enable(context)

    def action_disable(self, context) -> bool:
        provider = self.get_provider(context)
        if provider.is_enabled(context) is False:
            context.logger.debug(f"{self.key}: déjà désactivé")
            return False
        context.logger.info(f"{self.key}: désactivation au démarrage")
        return provider.disable(context)

    def action_start(self, context) -> bool:
        provider = self.get_provider(context)
        if provider.is_running(context):
            context.logger.debug(f"{self.key}: déjà démarré")
            return False
        context.logger.info(f"{self.key}: démarrage")
        return provider.start(context)

    def action_stop(self, context) -> bool:
        provider = self.get_provider(context)
        if not provider.is_running(context):
            context.logger.debug(f"{self.key}: déjà arrêté")
            return False
        context.logger.info(f"{self.key}: arrêt")
        return provider.stop(context)

    def action_restart(self, context) -> bool:
        provider = self.get_provider(context)
        context.logger.info(f"{self.key}: redémarrage")
        if self.supports.get('restart', True):
            return provider.restart(context)
        if provider.is_running(context):
            provider.stop(context)
        return provider.start(context)

    def action_load(self, context) -> bool:
        context.logger.info(f"{self.key}: chargement")
        return self.get_provider(context).load(context)

    def describe(self) -> dict:
        description = super().describe()
        description.update({
            'service_name': self.service_name,
            'provider': self.provider,
            'supports': dict(self.supports),
        })
        return description
