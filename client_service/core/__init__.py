"""
Module Core - Composants de base de l'installateur

Ce module contient :
- Configuration
- Logging
- Détection de la plateforme et attributs par défaut
- Localisation de chef-client
- Planification des exécutions
"""
