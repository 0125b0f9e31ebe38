"""
Rendu des templates Jinja2 livrés avec le paquet
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from .base import ResourceError


TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderer:
    """
    Environnement Jinja2 pour les scripts d'init, manifestes et fichiers
    de configuration (pas d'échappement HTML, fins de ligne conservées)
    """

    def __init__(self, template_dir: Optional[str] = None):
        self.template_dir = Path(template_dir) if template_dir else TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, source: str, node: Dict[str, Any], variables: Optional[Dict[str, Any]] = None) -> str:
        """
        Rend un template

        Args:
            source: Chemin du template relatif au répertoire des templates
            node: Attributs du noeud, accessibles via 'node'
            variables: Variables propres à la ressource

        Returns:
            str: Contenu rendu
        """
        try:
            template = self.env.get_template(source)
            return template.render(node=node, **(variables or {}))
        except TemplateError as e:
            raise ResourceError(f"Rendu du template {source} impossible: {e}") from e
