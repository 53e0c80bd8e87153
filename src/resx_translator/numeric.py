"""
Masquage des nombres avant l'appel au modèle et restauration après.

Les littéraux numériques sont remplacés par des jetons `[[NUMn]]` que le
modèle doit recopier tels quels. Après traduction, chaque jeton est
remplacé par sa valeur, puis les chiffres arabes de cette valeur sont
convertis dans l'alphabet natif de la langue (thaï, lao, khmer).

Pour le thaï, les années sont converties en ère bouddhique (+543) dès le
masquage, sauf si le nombre est collé à une unité ou une devise.
"""

import re
from dataclasses import dataclass, field

from .locales import Locale

NUMBER_PATTERN = re.compile(r"\d{4}s\b|\d+(?:,\d{3})*(?:\.\d+)?")

BUDDHIST_ERA_OFFSET = 543
BUDDHIST_ERA_RANGE = (1000, 2099)

UNITS = frozenset(
    {
        "MB", "GB", "KB", "TB", "PB", "BYTE", "BYTES", "BIT", "BITS",
        "M", "KM", "CM", "MM", "NM", "METER", "METERS", "HECTARE", "HECTARES",
        "INCH", "INCHES", "FT", "FEET", "MILE", "MILES",
        "KG", "G", "MG", "LB", "OZ", "L", "ML",
        "MS", "S", "SEC", "MIN", "HR", "HOUR", "HOURS", "DAY", "DAYS",
        "WEEK", "WEEKS", "MONTH", "MONTHS", "HZ", "KHZ", "GHZ", "FPS",
        "PX", "PT", "DPI", "PPI", "VH", "VW", "REM", "EM", "DP", "SP",
        "$", "€", "£", "¥", "฿", "%", "PERCENT",
    }
)
CURRENCY_SYMBOLS = "$€£¥฿"

# Mot ou symbole collé au nombre (espaces autorisés)
_UNIT_AFTER = re.compile(r"\s*([^\W\d_]+|[$€£¥฿%])")
_CURRENCY_BEFORE = re.compile(r"([$€£¥฿])\s*$")


@dataclass
class PlaceholderMap:
    """
    Correspondance ordonnée jeton → valeur numérique d'origine.

    Créée pour un seul appel de traduction. Les valeurs sont stockées après
    l'ajustement propre à la langue (ère bouddhique) et avant la conversion
    des chiffres.

    Attributes:
        prefix: Préfixe des jetons ("NUM" sauf collision avec le texte source)
        values: {jeton: valeur} dans l'ordre d'apparition
    """

    prefix: str = "NUM"
    values: dict[str, str] = field(default_factory=dict)

    def token(self, index: int) -> str:
        return f"[[{self.prefix}{index}]]"

    def add(self, value: str) -> str:
        token = self.token(len(self.values))
        self.values[token] = value
        return token

    @property
    def token_pattern(self) -> re.Pattern:
        return re.compile(r"\[\[" + re.escape(self.prefix) + r"(\d+)\]\]", re.IGNORECASE)

    def __len__(self) -> int:
        return len(self.values)

    def __bool__(self) -> bool:
        return bool(self.values)


def _choose_prefix(text: str) -> str:
    """Allonge le préfixe tant qu'il apparaît déjà dans le texte source."""
    prefix = "NUM"
    upper = text.upper()
    while f"[[{prefix}" in upper:
        prefix += "X"
    return prefix


def has_adjacent_unit(text: str, start: int, end: int) -> bool:
    """
    Vérifie si le nombre text[start:end] est collé à une unité ou une devise.

    Une unité peut suivre le nombre ("1990 MB", "1990px", "50%"), une devise
    peut le précéder ("$1990").
    """
    after = _UNIT_AFTER.match(text, end)
    if after and after.group(1).upper() in UNITS:
        return True
    return _CURRENCY_BEFORE.search(text[:start]) is not None


def _adjust_for_locale(value: str, locale: Locale, text: str, start: int, end: int) -> str:
    if locale.code != "th" or not value.isdigit():
        return value

    number = int(value)
    low, high = BUDDHIST_ERA_RANGE
    if low <= number <= high and not has_adjacent_unit(text, start, end):
        return str(number + BUDDHIST_ERA_OFFSET)
    return value


def preprocess(text: str, locale: Locale) -> tuple[str, PlaceholderMap]:
    """
    Remplace chaque nombre du texte par un jeton `[[NUMi]]`.

    Args:
        text: Texte source
        locale: Langue cible (détermine l'ajustement calendaire)

    Returns:
        Tuple (texte masqué, PlaceholderMap)

    Example:
        >>> masked, pmap = preprocess("Founded in 1990", get_locale("th"))
        >>> masked
        'Founded in [[NUM0]]'
        >>> pmap.values
        {'[[NUM0]]': '2533'}
    """
    placeholders = PlaceholderMap(prefix=_choose_prefix(text))

    def _mask(match: re.Match) -> str:
        value = match.group(0)
        if value[-1] in "sS":
            value = value[:-1]
        value = value.replace(",", "")
        value = _adjust_for_locale(value, locale, text, match.start(), match.end())
        return placeholders.add(value)

    masked = NUMBER_PATTERN.sub(_mask, text)
    return masked, placeholders


def to_native_digits(value: str, digits: str) -> str:
    """Convertit les chiffres arabes 0-9 dans l'alphabet donné."""
    return value.translate(str.maketrans("0123456789", digits))


def postprocess(translated: str, placeholders: PlaceholderMap, locale: Locale) -> str:
    """
    Restaure les valeurs masquées dans la sortie du modèle.

    Les jetons sont reconnus sans tenir compte de la casse. Les chiffres sont
    convertis après substitution, sur la valeur restaurée uniquement. Un jeton
    absent de la sortie n'est pas réparé (voir missing_tokens()).
    """
    if not placeholders:
        return translated

    def _restore(match: re.Match) -> str:
        value = placeholders.values.get(f"[[{placeholders.prefix}{match.group(1)}]]")
        if value is None:
            return match.group(0)
        if locale.digits:
            value = to_native_digits(value, locale.digits)
        return value

    return placeholders.token_pattern.sub(_restore, translated)


def missing_tokens(translated: str, placeholders: PlaceholderMap) -> list[str]:
    """Jetons que le modèle n'a pas recopiés (reformulation au lieu d'écho)."""
    lowered = translated.lower()
    return [token for token in placeholders.values if token.lower() not in lowered]


def stray_tokens(restored: str, placeholders: PlaceholderMap) -> list[str]:
    """Jetons restés dans la sortie après restauration (index inventé par le modèle)."""
    return [match.group(0) for match in placeholders.token_pattern.finditer(restored)]
