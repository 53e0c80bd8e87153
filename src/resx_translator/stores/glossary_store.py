"""
Tables de configuration rechargeables : glossaire, termes à ne pas traduire,
exclusions d'écho et traductions figées par clé.

Chaque store charge un fichier JSON du dossier config/ et expose un
instantané immuable. Un rechargement construit une nouvelle table complète
puis remplace la référence d'un coup : un lecteur voit toujours soit
l'ancienne table, soit la nouvelle, jamais un état intermédiaire.

Si la lecture échoue (fichier absent, JSON invalide, structure inattendue),
la table précédente est conservée et un avertissement est loggé.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Generic, Mapping, Optional, TypeVar

from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

TermTable = Mapping[str, Mapping[str, str]]


class JsonConfigStore(Generic[T]):
    """
    Base des stores de configuration JSON à remplacement atomique.

    Les sous-classes fournissent `_empty()` (table initiale) et `_parse()`
    (conversion du JSON brut en table immuable, ValueError si invalide).

    Attributes:
        path: Fichier JSON source
        label: Nom affiché dans les logs
    """

    label = "config"

    def __init__(self, path: Path, autoload: bool = True):
        self.path = Path(path)
        self._table: T = self._empty()
        if autoload:
            self.reload()

    def _empty(self) -> T:
        raise NotImplementedError

    def _parse(self, raw: Any) -> T:
        raise NotImplementedError

    def snapshot(self) -> T:
        """Retourne la table courante (référence immuable, lecture sans verrou)."""
        return self._table

    def reload(self) -> bool:
        """
        Relit le fichier et remplace la table en mémoire.

        Returns:
            True si la table a été remplacée, False si l'ancienne est conservée
        """
        if not self.path.exists():
            logger.warning(f"⚠ {self.path.name} introuvable ({self.label}), table conservée")
            return False

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            table = self._parse(raw)
        except (OSError, ValueError) as e:
            logger.warning(f"⚠ Échec du chargement de {self.path.name} : {e}")
            return False

        self._table = table
        logger.info(f"📘 {self.path.name} chargé")
        return True


def _parse_term_table(raw: Any, source: str) -> TermTable:
    if not isinstance(raw, dict):
        raise ValueError(f"{source} : objet {{langue: {{terme: traduction}}}} attendu")

    table: dict[str, Mapping[str, str]] = {}
    for locale, terms in raw.items():
        if not isinstance(terms, dict):
            raise ValueError(f"{source} : entrée '{locale}' invalide")
        table[str(locale).lower()] = MappingProxyType(
            {str(term): str(value) for term, value in terms.items()}
        )
    return MappingProxyType(table)


# ============================================================
# 🔹 Glossaire
# ============================================================


class GlossaryStore(JsonConfigStore[TermTable]):
    """
    Glossaire obligatoire par langue : {langue: {terme: traduction}}.

    Sert deux usages :
    - lookup() : termes présents dans le texte, injectés dans le prompt
    - exact() : traduction imposée quand la clé de l'entrée est un terme

    Example:
        >>> glossary = GlossaryStore(Path("config/glossary.json"))
        >>> glossary.lookup("fr", "Open Settings")
        [('Settings', 'Paramètres')]
    """

    label = "glossaire"

    def _empty(self) -> TermTable:
        return MappingProxyType({})

    def _parse(self, raw: Any) -> TermTable:
        return _parse_term_table(raw, self.path.name)

    def terms_for(self, locale: str, table: Optional[TermTable] = None) -> Mapping[str, str]:
        table = self._table if table is None else table
        return table.get(locale.lower(), MappingProxyType({}))

    def lookup(
        self, locale: str, text: str, table: Optional[TermTable] = None
    ) -> list[tuple[str, str]]:
        """
        Retourne les termes du glossaire présents dans le texte.

        La recherche est une inclusion de sous-chaîne insensible à la casse.
        Les termes les plus longs viennent en premier pour que le plus
        spécifique l'emporte en cas de chevauchement.

        Args:
            locale: Code langue
            text: Texte source
            table: Instantané à utiliser (défaut: table courante)
        """
        lowered = text.lower()
        hits = [
            (term, translation)
            for term, translation in self.terms_for(locale, table).items()
            if term and term.lower() in lowered
        ]
        return sorted(hits, key=lambda hit: len(hit[0]), reverse=True)

    def exact(self, locale: str, key: str, table: Optional[TermTable] = None) -> Optional[str]:
        """Traduction imposée pour une clé exacte, None sinon."""
        return self.terms_for(locale, table).get(key)


class KeyOverrideStore(JsonConfigStore[TermTable]):
    """
    Traductions figées par (langue, clé d'entrée), prioritaires sur tout le reste.

    Format : {langue: {clé: traduction}}. Fichier optionnel.
    """

    label = "traductions figées"

    def _empty(self) -> TermTable:
        return MappingProxyType({})

    def _parse(self, raw: Any) -> TermTable:
        return _parse_term_table(raw, self.path.name)

    def reload(self) -> bool:
        if not self.path.exists():
            return False
        return super().reload()

    def get(self, locale: str, key: str) -> Optional[str]:
        return self._table.get(locale.lower(), MappingProxyType({})).get(key)


# ============================================================
# 🔹 Termes à ne pas traduire
# ============================================================


class NoTranslateStore(JsonConfigStore[tuple[str, ...]]):
    """
    Liste de termes à conserver tels quels : {"no_translate": [...]}.
    """

    label = "no_translate"

    def _empty(self) -> tuple[str, ...]:
        return ()

    def _parse(self, raw: Any) -> tuple[str, ...]:
        terms = raw.get("no_translate") if isinstance(raw, dict) else None
        if not isinstance(terms, list):
            raise ValueError(f"{self.path.name} : clé 'no_translate' (liste) attendue")

        unique: dict[str, str] = {}
        for term in terms:
            term = str(term)
            unique.setdefault(term.lower(), term)
        return tuple(unique.values())

    def lookup(self, text: str, terms: Optional[tuple[str, ...]] = None) -> list[str]:
        """Termes de la liste présents dans le texte (insensible à la casse)."""
        terms = self._table if terms is None else terms
        lowered = text.lower()
        return [term for term in terms if term and term.lower() in lowered]


# ============================================================
# 🔹 Exclusions d'écho
# ============================================================


@dataclass(frozen=True)
class EchoExclusions:
    """
    Termes pour lesquels une sortie identique à la source est légitime
    (noms propres, sigles, mots empruntés).

    Tous les termes sont stockés en minuscules.

    Attributes:
        global_terms: Exclusions valables pour toutes les langues
        locale_terms: Exclusions propres à une langue
    """

    global_terms: frozenset[str] = frozenset()
    locale_terms: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def for_locale(self, locale: str) -> frozenset[str]:
        return self.locale_terms.get(locale.lower(), frozenset())

    def words(self, locale: str) -> list[str]:
        """Exclusions globales puis propres à la langue."""
        return [*self.global_terms, *self.for_locale(locale)]

    def contains(self, locale: str, term: str) -> bool:
        lowered = term.lower()
        return lowered in self.global_terms or lowered in self.for_locale(locale)


def _get_any(raw: dict, *names: str) -> Any:
    lowered = {str(key).lower(): value for key, value in raw.items()}
    for name in names:
        if name in lowered:
            return lowered[name]
    return None


class EchoExclusionStore(JsonConfigStore[EchoExclusions]):
    """
    Exclusions d'écho : {"global": [...], "locales": {langue: [...]}}.

    Les variantes "Global" / "Languages" sont aussi acceptées.
    """

    label = "exclusions d'écho"

    def _empty(self) -> EchoExclusions:
        return EchoExclusions()

    def _parse(self, raw: Any) -> EchoExclusions:
        if not isinstance(raw, dict):
            raise ValueError(f"{self.path.name} : objet JSON attendu")

        global_terms = _get_any(raw, "global") or []
        locales = _get_any(raw, "locales", "languages") or {}
        if not isinstance(global_terms, list) or not isinstance(locales, dict):
            raise ValueError(f"{self.path.name} : structure invalide")

        locale_terms: dict[str, frozenset[str]] = {}
        for locale, terms in locales.items():
            if not isinstance(terms, list):
                raise ValueError(f"{self.path.name} : entrée '{locale}' invalide")
            locale_terms[str(locale).lower()] = frozenset(str(t).lower() for t in terms)

        return EchoExclusions(
            global_terms=frozenset(str(t).lower() for t in global_terms),
            locale_terms=MappingProxyType(locale_terms),
        )
