"""
Ressources de fichiers : répertoire, fichier, template, fichier distant, lien
"""

import os
import shutil
import tempfile
from typing import Any, Dict, Optional, Union

import requests

from .base import Resource, ResourceError


def normalize_mode(mode: Union[int, str, None]) -> Optional[int]:
    """Accepte 0o755, 755 ou '0755'"""
    if mode is None:
        return None
    if isinstance(mode, str):
        return int(mode, 8)
    return mode


class FileSystemResource(Resource):
    """
    Ressource possédant un chemin, des droits et un propriétaire
    """

    def __init__(self, path: str, owner: Optional[str] = None, group: Optional[str] = None,
                 mode: Union[int, str, None] = None, **kwargs):
        super().__init__(path, **kwargs)
        self.path = path
        self.owner = owner
        self.group = group
        self.mode = normalize_mode(mode)

    def _apply_permissions(self, context) -> bool:
        """
        Applique mode et propriétaire si nécessaire

        Returns:
            bool: True si quelque chose a changé
        """
        if os.name == 'nt' or not os.path.exists(self.path):
            return False

        changed = False
        stat = os.stat(self.path)

        if self.mode is not None and (stat.st_mode & 0o7777) != self.mode:
            context.logger.info(f"{self.key}: mode {oct(stat.st_mode & 0o7777)} -> {oct(self.mode)}")
            if not context.dry_run:
                os.chmod(self.path, self.mode)
            changed = True

        uid, gid = self._resolve_ownership()
        if (uid != -1 and stat.st_uid != uid) or (gid != -1 and stat.st_gid != gid):
            context.logger.info(f"{self.key}: propriétaire -> {self.owner or ''}:{self.group or ''}")
            if not context.dry_run:
                os.chown(self.path, uid, gid)
            changed = True

        return changed

    def _resolve_ownership(self):
        import grp
        import pwd

        uid = gid = -1
        try:
            if self.owner is not None:
                uid = pwd.getpwnam(self.owner).pw_uid
            if self.group is not None:
                gid = grp.getgrnam(self.group).gr_gid
        except KeyError as e:
            raise ResourceError(f"{self.key}: utilisateur ou groupe inconnu {e}") from e
        return uid, gid

    def describe(self) -> dict:
        description = super().describe()
        description.update({
            'path': self.path,
            'owner': self.owner,
            'group': self.group,
            'mode': oct(self.mode) if self.mode is not None else None,
        })
        return description


class Directory(FileSystemResource):
    resource_type = 'directory'
    allowed_actions = ('create', 'delete', 'nothing')
    default_action = 'create'

    def __init__(self, path: str, recursive: bool = False, **kwargs):
        super().__init__(path, **kwargs)
        self.recursive = recursive

    def action_create(self, context) -> bool:
        created = False
        if not os.path.isdir(self.path):
            context.logger.info(f"{self.key}: création du répertoire")
            if not context.dry_run:
                try:
                    if self.recursive:
                        os.makedirs(self.path)
                    else:
                        os.mkdir(self.path)
                except OSError as e:
                    raise ResourceError(f"{self.key}: {e}") from e
            created = True

        return self._apply_permissions(context) or created

    def action_delete(self, context) -> bool:
        if not os.path.isdir(self.path):
            return False

        context.logger.info(f"{self.key}: suppression du répertoire")
        if not context.dry_run:
            if self.recursive:
                shutil.rmtree(self.path)
            else:
                os.rmdir(self.path)
        return True


class File(FileSystemResource):
    resource_type = 'file'
    allowed_actions = ('create', 'delete', 'nothing')
    default_action = 'create'

    def __init__(self, path: str, content: Union[str, bytes, None] = None, **kwargs):
        super().__init__(path, **kwargs)
        self.content = content

    def render(self, context) -> bytes:
        """Contenu voulu du fichier"""
        content = self.content or ''
        return content.encode('utf-8') if isinstance(content, str) else content

    def _current_content(self) -> Optional[bytes]:
        try:
            with open(self.path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            return None

    def _write(self, content: bytes):
        directory = os.path.dirname(self.path) or '.'
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.' + os.path.basename(self.path))
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(content)
            # mkstemp crée en 0600
            if self.mode is not None:
                os.chmod(tmp_path, self.mode)
            elif os.path.exists(self.path):
                shutil.copymode(self.path, tmp_path)
            else:
                os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def action_create(self, context) -> bool:
        desired = self.render(context)
        current = self._current_content()
        updated = False

        if current != desired:
            if current is None:
                context.logger.info(f"{self.key}: création du fichier")
            else:
                context.logger.info(f"{self.key}: mise à jour du contenu")

            if not context.dry_run:
                try:
                    self._write(desired)
                except OSError as e:
                    raise ResourceError(f"{self.key}: écriture impossible: {e}") from e
            updated = True

        return self._apply_permissions(context) or updated

    def action_delete(self, context) -> bool:
        if not os.path.lexists(self.path):
            return False

        context.logger.info(f"{self.key}: suppression du fichier")
        if not context.dry_run:
            os.remove(self.path)
        return True


class Template(File):
    """
    Fichier dont le contenu est un template Jinja2 rendu avec les
    attributs du noeud et des variables propres à la ressource
    """

    resource_type = 'template'

    def __init__(self, path: str, source: str, variables: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(path, **kwargs)
        self.source = source
        self.variables = variables or {}

    def render(self, context) -> bytes:
        return context.render_template(self.source, self.variables).encode('utf-8')

    def describe(self) -> dict:
        description = super().describe()
        description.update({'source': self.source, 'variables': dict(self.variables)})
        return description


class RemoteFile(File):
    """
    Fichier téléchargé depuis une URL HTTP(S)
    """

    resource_type = 'remote_file'

    def __init__(self, path: str, source: str, timeout: int = 30, **kwargs):
        super().__init__(path, **kwargs)
        self.source = source
        self.timeout = timeout

    def render(self, context) -> bytes:
        context.logger.debug(f"{self.key}: téléchargement de {self.source}")
        try:
            response = requests.get(self.source, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ResourceError(f"{self.key}: téléchargement de {self.source} impossible: {e}") from e
        return response.content

    def describe(self) -> dict:
        description = super().describe()
        description['source'] = self.source
        return description


class Link(Resource):
    resource_type = 'link'
    allowed_actions = ('create', 'delete', 'nothing')
    default_action = 'create'

    def __init__(self, path: str, to: str, **kwargs):
        super().__init__(path, **kwargs)
        self.path = path
        self.to = to

    def action_create(self, context) -> bool:
        if os.path.islink(self.path) and os.readlink(self.path) == self.to:
            return False

        context.logger.info(f"{self.key}: lien vers {self.to}")
        if not context.dry_run:
            if os.path.islink(self.path):
                os.unlink(self.path)
            elif os.path.exists(self.path):
                raise ResourceError(f"{self.key}: {self.path} existe et n'est pas un lien")
            os.symlink(self.to, self.path)
        return True

    def action_delete(self, context) -> bool:
        if not os.path.islink(self.path):
            return False

        context.logger.info(f"{self.key}: suppression du lien")
        if not context.dry_run:
            os.unlink(self.path)
        return True

    def describe(self) -> dict:
        description = super().describe()
        description.update({'path': self.path, 'to': self.to})
        return description
