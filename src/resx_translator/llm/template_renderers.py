"""
Construction du prompt de traduction à partir du template Jinja2.

Le template fixe l'ordre des sections ; ce module se contente de préparer
les paramètres (règles de la langue, détection des jetons) et de rendre.
"""

import re
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import TemplateNames
from ..locales import Locale
from .template_params import TranslateParams

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

PLACEHOLDER_TOKEN = re.compile(r"\[\[[^\[\]]+\]\]")


class PromptAssembler:
    """
    Assemble le prompt envoyé au modèle pour une entrée et une langue.

    build() est pur : même entrée, même prompt. Les recherches (glossaire,
    termes protégés, historique) sont faites par l'appelant sur l'instantané
    qu'il a observé.

    Example:
        >>> assembler = PromptAssembler()
        >>> prompt = assembler.build(
        ...     "Open [[NUM0]] files", get_locale("fr"),
        ...     glossary_hits=[("files", "fichiers")],
        ...     no_translate_hits=[], history_examples=[],
        ... )
        >>> prompt.endswith("Open [[NUM0]] files")
        True
    """

    def __init__(self, prompt_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(prompt_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_prompt(self, template_name: str, **kwargs) -> str:
        template = self.env.get_template(template_name)
        return template.render(**kwargs)

    def build(
        self,
        masked_text: str,
        locale: Locale,
        glossary_hits: Sequence[tuple[str, str]] = (),
        no_translate_hits: Sequence[str] = (),
        history_examples: Sequence[tuple[str, str]] = (),
    ) -> str:
        """
        Rend le prompt de traduction.

        Args:
            masked_text: Texte source après masquage des nombres
            locale: Langue cible
            glossary_hits: Termes obligatoires présents dans le texte
            no_translate_hits: Termes protégés présents dans le texte
            history_examples: Paires (source, traduction) déjà acceptées

        Returns:
            Prompt complet, texte masqué en dernier
        """
        params: TranslateParams = {
            "language_name": locale.name,
            "glossary": list(glossary_hits),
            "no_translate": list(no_translate_hits),
            "examples": list(history_examples),
            "number_rule": locale.number_instruction,
            "style_rule": locale.style_instruction,
            "has_placeholders": bool(PLACEHOLDER_TOKEN.search(masked_text)),
            "text": masked_text,
        }
        return self.render_prompt(TemplateNames.Translate_Template, **params)
