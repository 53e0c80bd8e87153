"""
Paramètres typés du template de traduction.
"""

from typing import TypedDict


class TranslateParams(TypedDict):
    """
    Paramètres pour translate.jinja.

    Attributes:
        language_name: Nom d'affichage de la langue cible (ex: "French")
        glossary: Termes obligatoires (terme, traduction), le plus long d'abord
        no_translate: Termes à conserver tels quels
        examples: Traductions passées (source, traduction)
        number_rule: Consigne de formatage des nombres
        style_rule: Consigne de style (chaîne vide si aucune)
        has_placeholders: Le texte masqué contient un jeton [[...]]
        text: Texte masqué, placé en dernier
    """

    language_name: str
    glossary: list[tuple[str, str]]
    no_translate: list[str]
    examples: list[tuple[str, str]]
    number_rule: str
    style_rule: str
    has_placeholders: bool
    text: str
