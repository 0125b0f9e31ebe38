"""
Module de configuration pour l'installateur du service chef-client

Ce module gère :
- La lecture du fichier de configuration INI
- Les surcharges d'attributs (section [chef_client])
- Les surcharges de détection du noeud (section [node])
- La configuration du logging
- La validation des paramètres
"""

import os
import sys
import configparser
from typing import Dict, Any, Optional, List

from .attributes import INIT_STYLES, default_attributes
from .logger import get_logger
from .platform import NodeInfo


class ConfigurationError(Exception):
    """Levée quand la configuration ne permet pas d'appliquer les recettes"""


# Attributs convertis en entier / booléen lors de la lecture
INTEGER_ATTRIBUTES = ('interval', 'splay')
BOOLEAN_ATTRIBUTES = ('verbose_logging', 'fork')

NODE_KEYS = ('platform', 'platform_version', 'platform_family', 'lsb_codename', 'chef_version')

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
CLIENT_LOG_LEVELS = ('debug', 'info', 'warn', 'error', 'fatal')
LAUNCHD_MODES = ('interval', 'daemon')
REPOSITORY_STYLES = ('apt',)


class ServiceConfig:
    """
    Gestionnaire de configuration

    Centralise les surcharges d'attributs du service chef-client et
    les paramètres propres à l'outil (logging).
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialise la configuration

        Args:
            config_file: Chemin vers le fichier de configuration (optionnel)
        """
        self.config = configparser.ConfigParser()
        self.config_file = config_file or self._get_default_config_path()
        self.logger = get_logger()

        self._set_defaults()
        self._load_config()

    def _get_default_config_path(self) -> str:
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("PROGRAMDATA", "C:\\ProgramData"),
                "ChefClientService",
                "config.ini"
            )
        return "/etc/chef-client-service/config.ini"

    def _set_defaults(self):
        """
        Définit les sections et valeurs par défaut

        Les sections [chef_client] et [node] sont vides : les attributs
        par défaut viennent de la table par plateforme.
        """
        self.config.add_section('chef_client')
        self.config.add_section('node')

        self.config.add_section('logging')
        self.config.set('logging', 'log_level', 'INFO')
        self.config.set('logging', 'log_file', self._get_default_log_path())
        self.config.set('logging', 'max_log_size', '10485760')  # 10MB
        self.config.set('logging', 'backup_count', '5')

    def _get_default_log_path(self) -> str:
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("PROGRAMDATA", "C:\\ProgramData"),
                "ChefClientService",
                "logs",
                "service.log"
            )
        return "/var/log/chef-client-service/service.log"

    def _load_config(self):
        """
        Charge la configuration depuis le fichier

        Un fichier absent laisse les valeurs par défaut, un fichier
        illisible lève ConfigurationError.
        """
        if not os.path.exists(self.config_file):
            self.logger.debug(f"Fichier de configuration non trouvé: {self.config_file}, valeurs par défaut")
            return

        try:
            self.config.read(self.config_file, encoding='utf-8')
        except configparser.Error as e:
            raise ConfigurationError(f"Fichier de configuration invalide {self.config_file}: {e}") from e

        self.logger.debug(f"Configuration chargée depuis: {self.config_file}")

    def get(self, section: str, option: str, fallback: Any = None) -> str:
        return self.config.get(section, option, fallback=fallback)

    def getboolean(self, section: str, option: str, fallback: bool = False) -> bool:
        return self.config.getboolean(section, option, fallback=fallback)

    def getint(self, section: str, option: str, fallback: int = 0) -> int:
        return self.config.getint(section, option, fallback=fallback)

    def set(self, section: str, option: str, value: Any):
        """
        Définit une valeur de configuration (None est stocké vide)
        """
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, option, '' if value is None else str(value))

    def save(self):
        """
        Sauvegarde la configuration dans le fichier

        Crée les dossiers parents si nécessaire.
        """
        config_dir = os.path.dirname(self.config_file)
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)

        with open(self.config_file, 'w', encoding='utf-8') as f:
            self.config.write(f)

        self.logger.info(f"Configuration sauvegardée dans: {self.config_file}")

    def get_attribute_overrides(self) -> Dict[str, Any]:
        """
        Récupère les surcharges d'attributs de la section [chef_client]

        Une valeur vide signifie None (attribut désactivé).

        Returns:
            dict: Attributs typés

        Raises:
            ConfigurationError: Si un entier ou un booléen est illisible
        """
        overrides = {}
        for key, value in self.config.items('chef_client'):
            try:
                if value == '':
                    overrides[key] = None
                elif key in INTEGER_ATTRIBUTES:
                    overrides[key] = self.getint('chef_client', key)
                elif key in BOOLEAN_ATTRIBUTES:
                    overrides[key] = self.getboolean('chef_client', key)
                else:
                    overrides[key] = value
            except ValueError as e:
                raise ConfigurationError(f"Valeur invalide pour '{key}': {value}") from e
        return overrides

    def get_node_overrides(self) -> Dict[str, str]:
        """
        Récupère les surcharges de détection de la section [node]
        """
        return {
            key: value
            for key, value in self.config.items('node')
            if key in NODE_KEYS and value != ''
        }

    def get_logging_config(self) -> Dict[str, Any]:
        return {
            'log_level': self.get('logging', 'log_level', 'INFO'),
            'log_file': self.get('logging', 'log_file') or None,
            'max_log_size': self.getint('logging', 'max_log_size', 10485760),
            'backup_count': self.getint('logging', 'backup_count', 5),
        }

    def apply_node_overrides(self, node: NodeInfo) -> NodeInfo:
        """
        Applique les surcharges [node] à un noeud détecté

        Changer de plateforme sans donner de famille recalcule la famille.
        """
        overrides = self.get_node_overrides()
        if not overrides:
            return node

        values = node.to_dict()
        if 'platform' in overrides and 'platform_family' not in overrides:
            values['platform_family'] = None
        values.update(overrides)
        return NodeInfo(**values)

    def build_attributes(self, node: NodeInfo) -> Dict[str, Any]:
        """
        Construit les attributs effectifs : table par défaut + surcharges

        Args:
            node: Noeud courant

        Returns:
            dict: Attributs chef_client
        """
        attributes = default_attributes(node)
        attributes.update(self.get_attribute_overrides())
        return attributes

    def get_errors(self) -> List[str]:
        """
        Liste les erreurs de configuration

        Returns:
            list: Messages d'erreur (vide si la configuration est valide)
        """
        errors = []
        overrides = self.config['chef_client']

        init_style = overrides.get('init_style')
        if init_style and init_style not in INIT_STYLES:
            errors.append(f"Style d'init inconnu '{init_style}' (valeurs: {', '.join(INIT_STYLES)})")

        launchd_mode = overrides.get('launchd_mode')
        if launchd_mode and launchd_mode not in LAUNCHD_MODES:
            errors.append("launchd_mode invalide (doit être: interval, daemon)")

        for key in INTEGER_ATTRIBUTES:
            value = overrides.get(key)
            if value and not value.isdigit():
                errors.append(f"{key} doit être un entier positif")

        client_log_level = overrides.get('log_level')
        if client_log_level and client_log_level.lower() not in CLIENT_LOG_LEVELS:
            errors.append(f"Niveau de log chef-client invalide '{client_log_level}'")

        repository_style = overrides.get('repository_style')
        if repository_style and repository_style not in REPOSITORY_STYLES:
            errors.append(f"repository_style inconnu '{repository_style}'")

        log_level = self.get('logging', 'log_level', 'INFO')
        if log_level.upper() not in LOG_LEVELS:
            errors.append("Niveau de log invalide")

        return errors

    def validate(self) -> bool:
        """
        Valide la configuration courante

        Returns:
            bool: True si la configuration est valide, False sinon
        """
        errors = self.get_errors()
        for error in errors:
            self.logger.error(f"Erreur de configuration: {error}")
        return not errors


def create_default_config(config_path: str) -> ServiceConfig:
    """
    Crée un fichier de configuration par défaut

    Args:
        config_path: Chemin où créer le fichier de configuration

    Returns:
        ServiceConfig: Instance de configuration créée
    """
    config = ServiceConfig(config_path)
    config.set('chef_client', 'interval', 1800)
    config.set('chef_client', 'splay', 20)
    config.save()
    return config
