"""
Journaux destinés à la relecture humaine.

- ReviewLog : traductions signalées, ajoutées au fil de l'eau dans review.log
- RunSummary : bilan complet de l'exécution, écrit une fois à la fin
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from .logger import get_logger

logger = get_logger(__name__)

SEPARATOR = "-" * 60
DEFAULT_EXCLUDED_PAGES = frozenset({"boinc"})
DEFAULT_RUN_NAME = "FullTranslation"


def format_review_block(page: str, locale: str, key: str, source: str, output: str) -> str:
    return (
        f"⚠ {page} [{locale} {key}]\n"
        f"Source: {source}\n"
        f"Output: {output}\n"
        f"{SEPARATOR}\n"
    )


class ReviewLog:
    """
    Journal en ajout seul des traductions à relire.

    Les pages listées dans `excluded_pages` ne sont jamais journalisées.

    Example:
        >>> review = ReviewLog(Path("logs/review.log"))
        >>> review.write("Settings", "km", "Title", "Settings", "Settings")
        True
    """

    def __init__(self, path: Path, excluded_pages: Iterable[str] = DEFAULT_EXCLUDED_PAGES):
        self.path = Path(path)
        self.excluded_pages = frozenset(page.lower() for page in excluded_pages)

    def is_excluded(self, page: str) -> bool:
        return page.lower() in self.excluded_pages

    def write(self, page: str, locale: str, key: str, source: str, output: str) -> bool:
        """
        Ajoute un bloc au journal.

        Returns:
            True si le bloc a été écrit, False si la page est exclue ou en cas d'erreur
        """
        if self.is_excluded(page):
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(format_review_block(page, locale, key, source, output))
        except OSError as e:
            logger.warning(f"⚠ Échec d'écriture du journal de relecture : {e}")
            return False
        return True


@dataclass
class RunSummary:
    """
    Bilan d'une exécution : traductions acceptées et éléments signalés.

    Attributes:
        lines: Blocs dans l'ordre de traitement
        accepted: Nombre de traductions acceptées
        flagged: Nombre d'éléments signalés
    """

    lines: list[str] = field(default_factory=list)
    accepted: int = 0
    flagged: int = 0

    def add_translation(self, locale: str, key: str, text: str) -> None:
        self.lines.append(f"{locale} {key} | {text}\n")
        self.accepted += 1

    def add_flagged(self, page: str, locale: str, key: str, source: str, output: str) -> None:
        self.lines.append(
            f"⚠ {page} [{locale} {key}]\nSource: {source}\nOutput: {output}\n"
        )
        self.flagged += 1

    def render(self) -> str:
        return "\n".join(self.lines)

    @staticmethod
    def run_name(folders: Iterable[Path], resources: Optional[Iterable[str]] = None) -> str:
        """
        Nom du journal final : ressources demandées, sinon dossier unique,
        sinon "FullTranslation".
        """
        resources = [r for r in (resources or []) if r]
        if resources:
            return "_".join(resources)

        folders = list(folders)
        if len(folders) == 1:
            return Path(folders[0]).name or DEFAULT_RUN_NAME
        return DEFAULT_RUN_NAME

    def write(self, folder: Path, name: str) -> Optional[Path]:
        """Écrit `<name>.log` dans le dossier. Retourne None en cas d'échec."""
        path = Path(folder) / f"{name}.log"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.render(), encoding="utf-8")
        except OSError as e:
            logger.error(f"⚠ Échec d'écriture du journal final : {e}")
            return None

        print(f"\n📝 Journal final : {path}")
        return path
