"""
Contrôle de qualité des sorties du modèle.

Le contrôle ne bloque jamais une traduction : il nettoie la sortie brute,
puis signale les défauts (écho de la source, lettres latines dans une
langue à écriture non latine, jeton numérique perdu) pour relecture
humaine. La traduction est acceptée et mise en cache dans tous les cas.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..locales import Locale
from ..stores import EchoExclusions, EchoExclusionStore

INVISIBLE_CHARS = ("\u200b", "\u200c", "\u200d", "\ufeff")
INVISIBLE_PATTERN = re.compile("[\u200b-\u200d\ufeff]")

# Annotation simple [meta], les jetons [[...]] sont préservés
ANNOTATION_PATTERN = re.compile(r"(?<!\[)\[[^\[\]]+\](?!\])")
ARROWS = ("➡️", "->")
TRIM_CHARS = " \"'„“”「」\n\r\t"

LATIN_PATTERN = re.compile(r"[A-Za-z]|&")
ECHO_THRESHOLD = 0.9


@dataclass
class QualityReport:
    """
    Résultat du contrôle d'une traduction.

    Attributes:
        echo: Sortie (quasi) identique à la source
        leak: Lettres latines restantes dans une langue non latine
        missing_tokens: Jetons [[NUMn]] absents de la sortie du modèle
        stray_tokens: Jetons restés tels quels après restauration
        excluded: Écho légitime listé dans les exclusions
    """

    echo: bool = False
    leak: bool = False
    missing_tokens: list[str] = field(default_factory=list)
    stray_tokens: list[str] = field(default_factory=list)
    excluded: bool = False

    @property
    def flagged(self) -> bool:
        return self.echo or self.leak or bool(self.missing_tokens) or bool(self.stray_tokens)

    @property
    def needs_review(self) -> bool:
        return self.flagged and not self.excluded

    @property
    def reasons(self) -> list[str]:
        reasons = []
        if self.echo:
            reasons.append("écho")
        if self.leak:
            reasons.append("fuite latine")
        if self.missing_tokens:
            reasons.append(f"jetons perdus {', '.join(self.missing_tokens)}")
        if self.stray_tokens:
            reasons.append(f"jetons inconnus {', '.join(self.stray_tokens)}")
        return reasons


def _normalize_for_comparison(text: str) -> str:
    return " ".join(text.lower().split())


def _calculate_similarity(text1: str, text2: str) -> float:
    """
    Ratio de caractères identiques à la même position.

    Returns:
        Similarité entre 0.0 et 1.0
    """
    if not text1 or not text2:
        return 0.0

    common_chars = sum(1 for a, b in zip(text1, text2) if a == b)
    return common_chars / max(len(text1), len(text2))


class QualityGate:
    """
    Nettoyage et détection des défauts de traduction.

    Example:
        >>> gate = QualityGate(echo_store)
        >>> gate.sanitize('"Ouvrir [meta]"\\n')
        'Ouvrir'
        >>> gate.is_echo("Open file", "open  FILE")
        True
    """

    def __init__(self, echo_store: Optional[EchoExclusionStore] = None):
        self.echo_store = echo_store

    def _exclusions(self, exclusions: Optional[EchoExclusions]) -> EchoExclusions:
        if exclusions is not None:
            return exclusions
        if self.echo_store is not None:
            return self.echo_store.snapshot()
        return EchoExclusions()

    # -----------------------------------
    # 🔹 Nettoyage
    # -----------------------------------
    @staticmethod
    def sanitize(raw: str) -> str:
        """
        Retire caractères invisibles, annotations [meta], flèches et
        guillemets/espaces de bord.
        """
        if not raw:
            return raw

        cleaned = raw
        for char in INVISIBLE_CHARS:
            cleaned = cleaned.replace(char, "")
        cleaned = ANNOTATION_PATTERN.sub("", cleaned)
        for arrow in ARROWS:
            cleaned = cleaned.replace(arrow, "")
        return cleaned.strip(TRIM_CHARS)

    @staticmethod
    def finalize(source: str, text: str) -> str:
        """
        Ajuste la forme de la sortie à celle de la source.

        - Source sur une ligne, sortie sur plusieurs : première ligne non vide
        - Source sans ponctuation finale : .!? finaux retirés
        """
        if "\n" not in source and "\n" in text:
            first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
            if first_line:
                text = first_line

        if not source.endswith((".", "!", "?")):
            text = text.rstrip(".!?")
        return text

    # -----------------------------------
    # 🔹 Détections
    # -----------------------------------
    @staticmethod
    def is_echo(source: str, translated: str) -> bool:
        """Sortie identique à la source, ou similaire à plus de 90% par position."""
        src = _normalize_for_comparison(source)
        dst = _normalize_for_comparison(translated)
        if src == dst:
            return True
        return _calculate_similarity(src, dst) > ECHO_THRESHOLD

    def is_leak(
        self,
        locale: Locale,
        translated: str,
        exclusions: Optional[EchoExclusions] = None,
    ) -> bool:
        """
        Détecte des lettres latines (ou `&`) dans une langue à écriture non latine.

        Les termes exclus sont retirés par sous-chaîne, sans tenir compte des
        limites de mots, pour couvrir un mot collé à la ponctuation locale.
        """
        if not locale.non_latin:
            return False

        scrubbed = INVISIBLE_PATTERN.sub("", translated)
        for word in self._exclusions(exclusions).words(locale.code):
            if word:
                scrubbed = re.sub(re.escape(word), "", scrubbed, flags=re.IGNORECASE)
        return LATIN_PATTERN.search(scrubbed) is not None

    def is_excluded(
        self,
        locale: Locale,
        source: str,
        translated: str,
        exclusions: Optional[EchoExclusions] = None,
    ) -> bool:
        """Écho volontaire : sortie égale à la source, source listée dans les exclusions."""
        src = source.strip()
        if src.lower() != translated.strip().lower():
            return False
        return self._exclusions(exclusions).contains(locale.code, src)

    def evaluate(
        self,
        locale: Locale,
        source: str,
        translated: str,
        missing_tokens: Sequence[str] = (),
        stray_tokens: Sequence[str] = (),
    ) -> QualityReport:
        """Applique toutes les détections sur un même instantané d'exclusions."""
        exclusions = self._exclusions(None)
        return QualityReport(
            echo=self.is_echo(source, translated),
            leak=self.is_leak(locale, translated, exclusions),
            missing_tokens=list(missing_tokens),
            stray_tokens=list(stray_tokens),
            excluded=self.is_excluded(locale, source, translated, exclusions),
        )
