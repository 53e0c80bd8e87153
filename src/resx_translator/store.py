"""
Cache persistant des traductions, un fichier JSON par langue.

Les traductions acceptées sont stockées avec une clé `langue||texte`
où le texte est normalisé (retours chariot supprimés, sauts de ligne
remplacés par des espaces, espaces de bord retirés). La recherche est
insensible à la casse.

Format de stockage (cache/cache_<langue>.json):
    {"fr||Open file": "Ouvrir le fichier", ...}

Notes d'implémentation:
    - Écriture immédiate du fichier complet après chaque put() (pas de lot)
    - Pas d'éviction : les entrées sont ajoutées ou écrasées
    - Le cache sert aussi d'historique d'exemples pour le prompt
"""

import json
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from .logger import get_logger

logger = get_logger(__name__)

KEY_SEPARATOR = "||"
HISTORY_LIMIT = 5
EXAMPLE_MAX_CHARS = 200
MIN_SHARED_WORD_LENGTH = 4


def normalize(text: str) -> str:
    """Supprime les CR, remplace les LF par des espaces et retire les espaces de bord."""
    return text.replace("\r", "").replace("\n", " ").strip()


def make_key(locale: str, text: str) -> str:
    """Clé de cache `langue||texte_normalisé`."""
    return f"{locale}{KEY_SEPARATOR}{normalize(text)}"


def _truncate(text: str) -> str:
    if len(text) > EXAMPLE_MAX_CHARS + 3:
        return text[:EXAMPLE_MAX_CHARS] + "..."
    return text


class TranslationCache:
    """
    Cache des traductions acceptées, chargé langue par langue.

    Attributes:
        cache_dir: Répertoire des fichiers cache_<langue>.json
        locale: Langue actuellement chargée (None avant le premier chargement)

    Example:
        >>> cache = TranslationCache("cache")
        >>> cache.load_from_storage("fr")
        >>> cache.put("fr", "Open file", "Ouvrir le fichier")
        >>> cache.try_get("fr", "open FILE\\r\\n")
        'Ouvrir le fichier'
    """

    def __init__(self, cache_dir: str | Path = "cache") -> None:
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.locale: Optional[str] = None
        # {clé affichée: traduction} et {clé en minuscules: clé affichée}
        self._entries: dict[str, str] = {}
        self._index: dict[str, str] = {}

    def _get_cache_file(self, locale: str) -> Path:
        return self.cache_dir / f"cache_{locale}.json"

    def __len__(self) -> int:
        return len(self._entries)

    # -----------------------------------
    # 🔹 Chargement / persistance
    # -----------------------------------
    def load_from_storage(self, locale: str) -> int:
        """
        Remplace le contenu en mémoire par le cache persisté de la langue.

        Les clés sont renormalisées au chargement. Un fichier illisible est
        renommé en .backup et le cache repart vide.

        Returns:
            Nombre d'entrées chargées
        """
        self.locale = locale
        self._entries = {}
        self._index = {}

        cache_file = self._get_cache_file(locale)
        if not cache_file.exists():
            print(f"🗂 Pas de cache existant [{cache_file.name}], démarrage à vide")
            return 0

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("objet JSON attendu")
        except (OSError, ValueError) as e:
            logger.warning(f"⚠ Lecture du cache [{cache_file.name}] impossible : {e}")
            backup = cache_file.with_suffix(".json.backup")
            try:
                cache_file.replace(backup)
            except OSError as backup_error:
                logger.warning(f"⚠ Sauvegarde de {cache_file.name} impossible : {backup_error}")
            return 0

        for key, value in data.items():
            self._set(normalize(str(key)), str(value))

        print(f"🗂 Cache chargé [{cache_file.name}] : {len(self._entries)} entrées")
        return len(self._entries)

    def _persist(self, locale: str) -> bool:
        prefix = f"{locale}{KEY_SEPARATOR}".lower()
        data = {
            key: value
            for key, value in self._entries.items()
            if key.lower().startswith(prefix)
        }
        cache_file = self._get_cache_file(locale)
        try:
            with open(cache_file, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"⚠ Erreur d'écriture du cache [{cache_file.name}] : {e}")
            return False
        return True

    def flush(self) -> bool:
        """Écrit la langue chargée sur disque. Retourne False en cas d'échec."""
        if self.locale is None:
            return False
        return self._persist(self.locale)

    # -----------------------------------
    # 🔹 Lecture / écriture
    # -----------------------------------
    def _set(self, key: str, value: str) -> None:
        lowered = key.lower()
        previous = self._index.get(lowered)
        if previous is not None and previous != key:
            del self._entries[previous]
        self._index[lowered] = key
        self._entries[key] = value

    def try_get(self, locale: str, text: str) -> Optional[str]:
        """Traduction en cache pour ce texte, None si absente."""
        key = self._index.get(make_key(locale, text).lower())
        return self._entries.get(key) if key is not None else None

    def put(self, locale: str, text: str, translation: str) -> bool:
        """
        Enregistre une traduction puis réécrit le fichier de la langue.

        Un échec d'écriture est loggé et n'annule pas la mise à jour en mémoire.

        Returns:
            True si la persistance a réussi
        """
        self._set(make_key(locale, text), translation)
        return self._persist(locale)

    def entries(self, locale: str) -> Iterator[tuple[str, str]]:
        """Paires (texte source normalisé, traduction) de la langue."""
        prefix = f"{locale}{KEY_SEPARATOR}"
        for key, value in list(self._entries.items()):
            if key.lower().startswith(prefix.lower()):
                yield key[len(prefix):], value

    def purge(self, predicate: Callable[[str, str], bool], locale: Optional[str] = None) -> list[tuple[str, str]]:
        """
        Supprime les entrées pour lesquelles predicate(source, traduction) est vrai.

        Returns:
            Liste des paires supprimées
        """
        locale = locale or self.locale
        if locale is None:
            return []

        removed = [(src, dst) for src, dst in self.entries(locale) if predicate(src, dst)]
        for source, _ in removed:
            key = self._index.pop(make_key(locale, source).lower(), None)
            if key is not None:
                self._entries.pop(key, None)

        if removed:
            self._persist(locale)
        return removed

    # -----------------------------------
    # 🔹 Historique pour le prompt
    # -----------------------------------
    def history_examples(
        self,
        locale: str,
        text: str,
        glossary_terms: Iterable[str] = (),
        limit: int = HISTORY_LIMIT,
    ) -> list[tuple[str, str]]:
        """
        Sélectionne des traductions passées proches du texte courant.

        Un exemple est retenu s'il partage un terme du glossaire, un mot de
        plus de 3 lettres, ou s'il contient le texte (ou y est contenu).
        Classement : termes du glossaire communs, puis mots communs, puis
        inclusion, puis longueur du texte source.

        Args:
            locale: Code langue
            text: Texte source courant
            glossary_terms: Termes du glossaire présents dans le texte
            limit: Nombre maximum d'exemples

        Returns:
            Liste de paires (source, traduction), tronquées à 200 caractères
        """
        current = normalize(text).lower()
        words = [w for w in current.split(" ") if len(w) >= MIN_SHARED_WORD_LENGTH]
        terms = [t.lower() for t in glossary_terms if t]

        ranked = []
        for original, translated in self.entries(locale):
            lowered = original.lower()
            if not lowered or lowered == current:
                continue

            glossary_score = sum(1 for term in terms if term in lowered)
            word_score = sum(1 for word in words if word in lowered)
            is_substring = bool(current) and (current in lowered or lowered in current)

            if glossary_score or word_score or is_substring:
                score = (glossary_score, word_score, is_substring, len(original))
                ranked.append((score, original, translated))

        ranked.sort(key=lambda item: item[0], reverse=True)
        return [(_truncate(src), _truncate(dst)) for _, src, dst in ranked[:limit]]
