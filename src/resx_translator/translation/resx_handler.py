"""
Gestion des fichiers .resx : découverte, lecture des entrées et écriture
des versions localisées.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from bs4 import BeautifulSoup

from ..locales import TARGET_CODES

if TYPE_CHECKING:
    from bs4 import Tag


@dataclass
class ResxEntry:
    """
    Entrée texte d'un fichier .resx.

    Attributes:
        key: Attribut name de l'élément <data> ("alt" si absent)
        source_text: Contenu de l'élément <value>
        node: Élément <value> à mettre à jour
    """

    key: str
    source_text: str
    node: "Tag" = field(repr=False, compare=False)


def is_localized(path: Path, locale_codes: Iterable[str] = TARGET_CODES) -> bool:
    """Vrai si le fichier est déjà une version localisée (`<nom>.<langue>.resx`)."""
    name = path.name.lower()
    return any(name.endswith(f".{code}.resx") for code in locale_codes)


def localized_path(path: Path, locale_code: str) -> Path:
    """`Page.resx` → `Page.<langue>.resx`, dans le même dossier."""
    return path.with_name(f"{path.stem}.{locale_code}.resx")


def find_resx_files(
    folders: Iterable[Path],
    resources: Optional[Iterable[str]] = None,
    excluded_dir: str = "",
    locale_codes: Iterable[str] = TARGET_CODES,
) -> list[Path]:
    """
    Liste les fichiers .resx sources des dossiers (récursivement).

    Args:
        folders: Dossiers à parcourir
        resources: Noms de ressources à retenir (sans extension, insensible
            à la casse) ; None ou vide pour toutes
        excluded_dir: Nom de sous-dossier à ignorer
        locale_codes: Codes des versions localisées à ignorer

    Returns:
        Chemins triés par dossier, dans l'ordre des dossiers donnés
    """
    locale_codes = list(locale_codes)
    wanted = {r.lower() for r in (resources or []) if r}
    excluded = excluded_dir.lower()

    files: list[Path] = []
    for folder in folders:
        for path in sorted(Path(folder).rglob("*.resx")):
            if excluded and any(part.lower() == excluded for part in path.parts):
                continue
            if is_localized(path, locale_codes):
                continue
            if wanted and path.stem.lower() not in wanted:
                continue
            files.append(path)
    return files


def parse_document(content: bytes | str) -> BeautifulSoup:
    return BeautifulSoup(content, "xml")


def load_document(path: Path) -> BeautifulSoup:
    return parse_document(Path(path).read_bytes())


def iter_entries(doc: BeautifulSoup) -> Iterator[ResxEntry]:
    """
    Entrées texte non vides du document.

    Les ressources typées (images, binaires : attribut `type` ou `mimetype`)
    ne sont pas du texte et sont ignorées.
    """
    for data in doc.find_all("data"):
        if data.get("type") or data.get("mimetype"):
            continue
        value = data.find("value", recursive=False)
        if value is None:
            continue
        text = value.get_text()
        if not text.strip():
            continue
        yield ResxEntry(key=data.get("name", "alt"), source_text=text, node=value)


def set_value(entry: ResxEntry, translated: str) -> None:
    entry.node.string = translated


def save_document(doc: BeautifulSoup, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(str(doc), encoding="utf-8")
