"""
Package des recettes

- service : installation du service chef-client selon le style d'init
- repository : dépôt de paquets Opscode
"""
