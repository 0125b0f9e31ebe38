"""
Styles sans superviseur : BSD (rc.local) et style inconnu

Rien n'est installé, seuls des messages guident l'administrateur.
"""

from .base_service import BaseService


class BSDService(BaseService):
    init_style = 'bsd'

    def declare(self, recipe):
        recipe.log("Style de service 'bsd' : vous devez configurer votre fichier rc.local.")
        recipe.log(
            f"Astuce : {self.client_bin} -i {self.attributes['interval']} "
            f"-s {self.attributes['splay']}"
        )


class UnmanagedService(BaseService):
    init_style = 'none'

    def declare(self, recipe):
        recipe.log(
            "Impossible de déterminer le style d'init du service, une intervention manuelle "
            "est nécessaire pour démarrer chef-client.",
            level='warning',
        )
