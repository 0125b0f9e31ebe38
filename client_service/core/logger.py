"""
Module de logging pour l'installateur du service chef-client

Ce module fournit un système de logging centralisé avec :
- Rotation automatique des logs
- Niveau de log issu de la configuration
- Sortie console simplifiée
"""

import os
import sys
import logging
import logging.handlers


LOGGER_NAME = 'ChefClientService'


class ServiceLogger:
    """
    Gestionnaire de logging de l'application

    Configure une seule fois le logger nommé avec un handler fichier
    (rotation) et un handler console.
    """

    def __init__(self, config=None, console_stream=None):
        """
        Initialise le système de logging

        Args:
            config: Instance de ServiceConfig pour les paramètres de log
            console_stream: Flux du handler console (stdout par défaut)
        """
        self.config = config
        self.console_stream = console_stream or sys.stdout
        self.logger = logging.getLogger(LOGGER_NAME)

        # Éviter la duplication si déjà configuré
        if not self.logger.handlers:
            self._setup_logging()

    def _setup_logging(self):
        if self.config:
            logging_config = self.config.get_logging_config()
            log_level_str = logging_config['log_level']
            log_file = logging_config['log_file']
            max_size = logging_config['max_log_size']
            backup_count = logging_config['backup_count']
        else:
            log_level_str = 'INFO'
            log_file = self._get_default_log_file()
            max_size = 10485760  # 10MB
            backup_count = 5

        log_level = getattr(logging, log_level_str.upper(), logging.INFO)
        self.logger.setLevel(log_level)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if log_file:
            try:
                log_dir = os.path.dirname(log_file)
                if log_dir:
                    os.makedirs(log_dir, exist_ok=True)

                file_handler = logging.handlers.RotatingFileHandler(
                    filename=log_file,
                    maxBytes=max_size,
                    backupCount=backup_count,
                    encoding='utf-8'
                )
                file_handler.setLevel(log_level)
                file_handler.setFormatter(formatter)
                self.logger.addHandler(file_handler)

            except OSError as e:
                # Pas de droits sur le répertoire de log : console seulement
                print(f"Erreur lors de la configuration du logging fichier: {e}", file=sys.stderr)

        console_handler = logging.StreamHandler(self.console_stream)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(fmt='%(levelname)s - %(message)s'))
        self.logger.addHandler(console_handler)

        self.logger.debug("Système de logging initialisé")
        if self.config:
            self.logger.debug(f"Niveau de log: {log_level_str}")
            self.logger.debug(f"Fichier de log: {log_file}")

    def _get_default_log_file(self) -> str:
        """
        Détermine le fichier de log par défaut selon la plateforme

        Returns:
            str: Chemin vers le fichier de log par défaut
        """
        if sys.platform == "win32":
            return os.path.join(
                os.environ.get("TEMP", "C:\\temp"),
                "chef-client-service.log"
            )
        else:
            return "/tmp/chef-client-service.log"

    def get_logger(self) -> logging.Logger:
        return self.logger

    def reset(self):
        """Retire et ferme les handlers (utile avant une reconfiguration)"""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Fonction utilitaire pour récupérer un logger nommé

    Args:
        name: Nom du logger

    Returns:
        logging.Logger: Instance du logger
    """
    return logging.getLogger(name)
