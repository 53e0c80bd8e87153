"""
Point d'entrée en ligne de commande.

Exemples :
    python -m resx_translator                  # toutes les ressources, toutes les langues
    python -m resx_translator -l zh km         # deux langues seulement
    python -m resx_translator -p seahorse      # une ressource (nom sans extension)
    python -m resx_translator -d city offices  # sous-dossiers de Resources/
    python -m resx_translator -f               # ignore le cache et réécrit
    python -m resx_translator -hl              # purge les fuites latines du cache
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .backend_process import OllamaServer
from .config import ProjectPaths, load_backend_settings, lock_config
from .exceptions import ProjectRootNotFoundError
from .llm import OllamaBackend
from .locales import LOCALES, Locale, get_locale, is_supported
from .logger import LogSession
from .translation import ResxTranslator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resx_translator",
        description="Traduction des fichiers .resx via un serveur Ollama local.",
    )
    parser.add_argument(
        "-l", dest="languages", nargs="*", metavar="LANG",
        help="langues cibles uniquement (ex: -l zh km)",
    )
    parser.add_argument(
        "-p", dest="pages", nargs="*", metavar="PAGE",
        help="ressources à traduire, nom sans extension (ex: -p seahorse durian)",
    )
    parser.add_argument(
        "-d", dest="directories", nargs="*", metavar="DIR",
        help="sous-dossiers de Resources/ à parcourir (ex: -d city offices)",
    )
    parser.add_argument(
        "-f", dest="force", action="store_true",
        help="ignore le cache et réécrit les traductions",
    )
    parser.add_argument(
        "-hl", "--leak-scan", dest="leak_scan", action="store_true",
        help="retire du cache les entrées avec lettres latines (langues non latines)",
    )
    return parser


def select_locales(codes: Optional[Sequence[str]]) -> list[Locale]:
    """Langues demandées ; codes inconnus ignorés, toutes si aucune n'est valide."""
    if codes is None:
        return list(LOCALES.values())

    selected: list[Locale] = []
    for code in codes:
        if is_supported(code):
            selected.append(get_locale(code))
        else:
            print(f"⚠ Langue inconnue '{code}', ignorée.")

    if not selected:
        print("⚠ Aucune langue valide après -l, toutes les langues seront traduites.")
        return list(LOCALES.values())

    print(f"🌍 Langues : {', '.join(locale.code for locale in selected)}")
    return selected


def select_folders(resources_dir: Path, names: Optional[Sequence[str]]) -> list[Path]:
    """Sous-dossiers de Resources/ (insensible à la casse), Resources/ par défaut."""
    if not names:
        return [resources_dir]

    subdirs = [d for d in resources_dir.iterdir() if d.is_dir()] if resources_dir.is_dir() else []
    folders: list[Path] = []
    for name in names:
        match = next((d for d in subdirs if d.name.lower() == name.lower()), None)
        if match is not None:
            folders.append(match)
            print(f"📂 Sous-dossier : {match.name}")
        else:
            print(f"⚠ Sous-dossier '{name}' introuvable dans Resources, ignoré.")

    return folders or [resources_dir]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Point d'entrée principal du programme.

    Returns:
        Code de sortie (0 succès, 1 racine introuvable, 130 interruption)
    """
    args = build_parser().parse_args(argv)

    try:
        paths = ProjectPaths.resolve()
    except ProjectRootNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    LogSession.reset(base_dir=paths.final_log_dir)
    settings = load_backend_settings()
    lock_config()

    if args.leak_scan:
        print("🔍 Mode audit des fuites latines activé.\n")

    locales = select_locales(args.languages)
    folders = select_folders(paths.resources_dir, args.directories)
    pages = [p for p in (args.pages or []) if p]
    if pages:
        print(f"📌 Ressources : {', '.join(pages)}")

    backend = OllamaBackend(settings)
    server = OllamaServer(backend)
    translator = ResxTranslator(
        paths,
        backend,
        settings,
        force_overwrite=args.force,
        leak_scan=args.leak_scan,
    )

    try:
        translator.start_hot_reload()
        server.ensure_running()
        translator.translate(locales, folders, pages)
    except KeyboardInterrupt:
        print("\n❌ Traduction interrompue par l'utilisateur")
        return 130
    finally:
        translator.stop_hot_reload()
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
