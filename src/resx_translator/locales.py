"""
Registre des langues cibles et de leurs règles de formatage.

Chaque langue associe un code à un nom d'affichage, un éventuel alphabet de
chiffres natifs, le type d'écriture (latine ou non), le groupe de modèles
qui la sert, et les consignes de nombres/style injectées dans le prompt.

L'ensemble est figé au démarrage : tout code absent est rejeté.
"""

from dataclasses import dataclass
from typing import Literal, Optional

from .config import BackendSettings
from .exceptions import UnknownLocaleError

ModelGroup = Literal["sea", "western"]

THAI_DIGITS = "๐๑๒๓๔๕๖๗๘๙"
LAO_DIGITS = "໐໑໒໓໔໕໖໗໘໙"
KHMER_DIGITS = "០១២៣៤៥៦៧៨៩"

EUROPEAN_DOT_THOUSANDS = (
    "For {name}: Use Arabic numerals. Use a dot (.) for thousands and a comma (,) "
    "for decimals (e.g., 1.234,56)."
)

COMPOUND_NOUN_STYLE = (
    "CRITICAL: Do NOT use hyphens (-) to join nouns. {name} prefers compound words. "
    "Examples of WRONG: 'Bus-Station', 'Durian-Frucht'. "
    "Examples of CORRECT: 'Bus Station', 'Durianfrucht'. "
    "If unsure, use a single space, NEVER a hyphen."
)

DEFAULT_NUMBER_RULE = "Maintain standard Arabic numerals and original numeric formatting."


@dataclass(frozen=True)
class Locale:
    """
    Langue cible et ses règles.

    Attributes:
        code: Code court (ex: "km", "zh")
        name: Nom d'affichage utilisé dans le prompt (ex: "Khmer")
        model_group: Groupe de modèles ("sea" ou "western")
        digits: Chiffres natifs 0-9, None si la langue garde les chiffres arabes
        non_latin: True si la sortie ne doit contenir aucune lettre latine
        number_rule: Consigne de formatage des nombres ({name} substitué)
        style_rule: Consigne de style optionnelle ({name} substitué)
    """

    code: str
    name: str
    model_group: ModelGroup
    digits: Optional[str] = None
    non_latin: bool = False
    number_rule: str = DEFAULT_NUMBER_RULE
    style_rule: str = ""

    @property
    def number_instruction(self) -> str:
        return self.number_rule.format(name=self.name)

    @property
    def style_instruction(self) -> str:
        return self.style_rule.format(name=self.name)

    def model(self, settings: BackendSettings) -> str:
        """Modèle à utiliser pour cette langue."""
        if self.model_group == "sea":
            return settings.sea_model
        return settings.western_model


_LOCALES: tuple[Locale, ...] = (
    # Groupe SEA-LION (Asie du Sud-Est et de l'Est)
    Locale(
        "km", "Khmer", "sea",
        digits=KHMER_DIGITS,
        non_latin=True,
        number_rule=(
            "Use Khmer numerals (០-៩) ONLY for dates and years (e.g., '២០២៦'). "
            "For all other technical values, prices, and IDs, maintain Arabic numerals (0-9). "
            "Do NOT perform arithmetic or convert calendar systems."
        ),
    ),
    Locale(
        "zh", "Simplified Chinese", "sea",
        non_latin=True,
        number_rule=(
            "For Chinese: Use Arabic numerals for years (e.g., '2026年'). Use standard Arabic "
            "numerals for most technical contexts. Maintain original formatting for measurements."
        ),
        style_rule=(
            "STYLE: Do NOT use spaces between Chinese characters and English/Numbers.\n"
            "- PUNCTUATION: Use Chinese full-width punctuation (。，？！)."
        ),
    ),
    Locale(
        "vi", "Vietnamese", "sea",
        number_rule=(
            "Use Arabic numerals: use a dot (.) for thousands and a comma (,) for decimals. "
            "For years, always include the word 'năm' (e.g., 'năm 2024')."
        ),
    ),
    Locale(
        "th", "Thai", "sea",
        digits=THAI_DIGITS,
        non_latin=True,
        number_rule=(
            "Numbers and years are already formatted for Thai context (Buddhist era). "
            "Keep them exactly as provided. Do NOT perform arithmetic or convert calendar "
            "systems. Display digits using Thai numerals (๐-๙)."
        ),
    ),
    Locale(
        "ja", "Japanese", "sea",
        non_latin=True,
        number_rule=(
            "For Japanese: Use Arabic numerals for years and centuries (e.g., '2026年', '21世紀'). "
            "Use Arabic numerals for all technical values, counts, and measurements "
            "(e.g., '5MB', '12人'). Only use Kanji numerals (一, 二, 三) if they are part of a "
            "fixed formal name or idiom."
        ),
        style_rule=(
            "STYLE: Use a half-width space (standard space) between Japanese characters and "
            "English words or Arabic numerals (e.g., '20 世紀' or 'Windows 11').\n"
            "- TERMINOLOGY: Use Katakana for technical loanwords.\n"
            "- PUNCTUATION: Use Japanese full-width punctuation (。 and 、) instead of (. and ,)."
        ),
    ),
    Locale(
        "lo", "Lao", "sea",
        digits=LAO_DIGITS,
        non_latin=True,
        number_rule=(
            "Preserve all numeric values exactly. Do NOT perform arithmetic or convert "
            "calendar systems. Display digits using Lao numerals (໐-໙)."
        ),
    ),
    Locale("ko", "Korean", "sea", non_latin=True),
    Locale("id", "Indonesian", "sea"),
    Locale("ms", "Malay", "sea"),
    # Groupe TranslateGemma (Europe et Occident)
    Locale("fr", "French", "western", number_rule=EUROPEAN_DOT_THOUSANDS),
    Locale(
        "de", "German", "western",
        number_rule=EUROPEAN_DOT_THOUSANDS,
        style_rule=COMPOUND_NOUN_STYLE,
    ),
    Locale("es", "Spanish", "western", number_rule=EUROPEAN_DOT_THOUSANDS),
    Locale(
        "nl", "Dutch", "western",
        number_rule=EUROPEAN_DOT_THOUSANDS,
        style_rule=COMPOUND_NOUN_STYLE,
    ),
    Locale("it", "Italian", "western", number_rule=EUROPEAN_DOT_THOUSANDS),
    Locale("pt", "Portuguese", "western", number_rule=EUROPEAN_DOT_THOUSANDS),
    Locale("cs", "Czech", "western", number_rule=EUROPEAN_DOT_THOUSANDS),
    Locale(
        "sv", "Swedish", "western",
        number_rule=(
            "For {name}: Use Arabic numerals. Use a space for thousands and a comma "
            "for decimals (e.g., 1 234,56)."
        ),
        style_rule=COMPOUND_NOUN_STYLE,
    ),
    Locale(
        "ru", "Russian", "western",
        non_latin=True,
        number_rule=EUROPEAN_DOT_THOUSANDS,
    ),
    Locale(
        "hi", "Hindi", "western",
        non_latin=True,
        number_rule=(
            "Use standard Arabic numerals (0-9). Devanagari numerals are not required "
            "for this modern UI context."
        ),
    ),
)

LOCALES: dict[str, Locale] = {locale.code: locale for locale in _LOCALES}

# Ordre de traitement par défaut, regroupé par modèle
TARGET_CODES: tuple[str, ...] = tuple(locale.code for locale in _LOCALES)


def get_locale(code: str) -> Locale:
    """
    Retourne la langue correspondant au code (insensible à la casse).

    Raises:
        UnknownLocaleError: Si le code n'est pas dans le registre
    """
    locale = LOCALES.get(code.strip().lower())
    if locale is None:
        raise UnknownLocaleError(code)
    return locale


def is_supported(code: str) -> bool:
    return code.strip().lower() in LOCALES
