"""
Ressources système : utilisateur, commande, message de log
"""

import logging
from typing import Dict, Optional

from .base import Resource, ResourceError


class User(Resource):
    """
    Utilisateur système, créé s'il n'existe pas
    """

    resource_type = 'user'
    allowed_actions = ('create', 'nothing')
    default_action = 'create'

    def __init__(self, username: str, system: bool = False, shell: Optional[str] = None,
                 home: Optional[str] = None, comment: Optional[str] = None, **kwargs):
        super().__init__(username, **kwargs)
        self.username = username
        self.system = system
        self.shell = shell
        self.home = home
        self.comment = comment

    def exists(self) -> bool:
        import pwd

        try:
            pwd.getpwnam(self.username)
            return True
        except KeyError:
            return False

    def _create_command(self, platform_family: str) -> list:
        if platform_family == 'freebsd':
            cmd = ['pw', 'useradd', self.username]
        else:
            cmd = ['useradd']
            if self.system:
                cmd.append('--system' if platform_family != 'openbsd' else '-r')
        if self.shell:
            cmd += ['-s', self.shell]
        if self.home:
            cmd += ['-d', self.home]
        if self.comment:
            cmd += ['-c', self.comment]
        if platform_family != 'freebsd':
            cmd.append(self.username)
        return cmd

    def action_create(self, context) -> bool:
        if self.exists():
            return False

        family = context.node.platform_family
        if family == 'mac_os_x':
            context.logger.warning(f"{self.key}: création d'utilisateur non supportée sur macOS, ignorée")
            return False

        context.logger.info(f"{self.key}: création de l'utilisateur")
        context.execute(self._create_command(family))
        return True

    def describe(self) -> dict:
        description = super().describe()
        description.update({'system': self.system, 'shell': self.shell, 'home': self.home})
        return description


class Execute(Resource):
    """
    Commande shell, exécutée à chaque application (ou sur notification
    avec l'action 'nothing')
    """

    resource_type = 'execute'
    allowed_actions = ('run', 'nothing')
    default_action = 'run'

    def __init__(self, name: str, command: Optional[str] = None, cwd: Optional[str] = None,
                 environment: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(name, **kwargs)
        self.command = command or name
        self.cwd = cwd
        self.environment = environment

    def action_run(self, context) -> bool:
        context.logger.info(f"{self.key}: exécution de '{self.command}'")
        context.execute(self.command, shell=True, cwd=self.cwd, env=self.environment)
        return True

    def describe(self) -> dict:
        description = super().describe()
        description['command'] = self.command
        return description


class Log(Resource):
    """
    Message écrit dans le log de l'exécution
    """

    resource_type = 'log'
    allowed_actions = ('write', 'nothing')
    default_action = 'write'

    def __init__(self, message: str, level: str = 'info', **kwargs):
        super().__init__(message, **kwargs)
        level_value = logging.getLevelName(level.upper())
        if not isinstance(level_value, int):
            raise ResourceError(f"Niveau de log inconnu '{level}'")
        self.message = message
        self.level = level

    def action_write(self, context) -> bool:
        context.logger.log(logging.getLevelName(self.level.upper()), self.message)
        return True

    def describe(self) -> dict:
        description = super().describe()
        description.update({'message': self.message, 'level': self.level})
        return description
