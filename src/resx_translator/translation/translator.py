"""
Orchestration de la traduction des ressources .resx.

Pour chaque fichier source et chaque langue cible :
- Chargement du cache de la langue (et audit des fuites latines si demandé)
- Changement de modèle si la langue appartient à un autre groupe
- Traduction séquentielle des entrées
- Écriture de `<nom>.<langue>.resx` à côté de la source

Le journal final est écrit une fois, à la fin de l'exécution.
"""

import time
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config import BackendSettings, ProjectPaths
from ..llm import OllamaBackend, PromptAssembler
from ..locales import LOCALES, Locale
from ..logger import get_logger
from ..quality import QualityGate
from ..review import ReviewLog, RunSummary
from ..store import TranslationCache
from ..stores import (
    EchoExclusionStore,
    GlossaryStore,
    HotReloader,
    KeyOverrideStore,
    NoTranslateStore,
)
from ..worker import TranslationWorker
from .pipeline import TranslationPipeline
from .resx_handler import (
    find_resx_files,
    iter_entries,
    localized_path,
    parse_document,
    save_document,
    set_value,
)

logger = get_logger(__name__)


class ResxTranslator:
    """
    Orchestrateur principal de traduction des fichiers .resx.

    Example:
        >>> paths = ProjectPaths.resolve()
        >>> translator = ResxTranslator(paths, OllamaBackend(settings), settings)
        >>> translator.translate([get_locale("fr")], [paths.resources_dir])
    """

    def __init__(
        self,
        paths: ProjectPaths,
        backend: OllamaBackend,
        settings: Optional[BackendSettings] = None,
        force_overwrite: bool = False,
        leak_scan: bool = False,
        excluded_dir: str = "",
    ):
        self.paths = paths
        self.backend = backend
        self.settings = settings or BackendSettings()
        self.leak_scan = leak_scan
        self.excluded_dir = excluded_dir

        paths.config_dir.mkdir(parents=True, exist_ok=True)

        self.glossary = GlossaryStore(paths.glossary_file)
        self.no_translate = NoTranslateStore(paths.no_translate_file)
        self.echo = EchoExclusionStore(paths.echo_file)
        self.key_overrides = KeyOverrideStore(paths.key_overrides_file)

        self.cache = TranslationCache(paths.cache_dir)
        self.quality = QualityGate(self.echo)
        self.review = ReviewLog(paths.review_log)
        self.summary = RunSummary()

        self.pipeline = TranslationPipeline(
            backend=backend,
            cache=self.cache,
            glossary=self.glossary,
            no_translate=self.no_translate,
            key_overrides=self.key_overrides,
            quality=self.quality,
            review=self.review,
            summary=self.summary,
            assembler=PromptAssembler(),
            settings=self.settings,
            force_overwrite=force_overwrite,
        )
        self.worker = TranslationWorker(self.pipeline)
        self.reloader: Optional[HotReloader] = None

    # -----------------------------------
    # 🔹 Rechargement à chaud
    # -----------------------------------
    def start_hot_reload(self) -> None:
        """Surveille glossary.json, echo.json et no_translate.json."""
        if self.reloader is not None:
            return
        self.reloader = HotReloader()
        self.reloader.watch(self.glossary.path, self.glossary.reload)
        self.reloader.watch(self.echo.path, self.echo.reload)
        self.reloader.watch(self.no_translate.path, self.no_translate.reload)

    def stop_hot_reload(self) -> None:
        if self.reloader is not None:
            self.reloader.stop()
            self.reloader = None

    # -----------------------------------
    # 🔹 Audit du cache
    # -----------------------------------
    def audit_leakage(self, locale: Locale) -> list[tuple[str, str]]:
        """
        Retire du cache les traductions contenant des lettres latines.

        Ces entrées seront renvoyées au modèle lors de la passe suivante.
        """
        exclusions = self.echo.snapshot()
        removed = self.cache.purge(
            lambda _source, translated: self.quality.is_leak(locale, translated, exclusions),
            locale.code,
        )

        if removed:
            print(f"\n🔍 [Audit {locale.code}] {len(removed)} entrée(s) avec fuite latine :")
            for source, translated in removed:
                print(f'   ❌ Purge : {source} (valeur: "{translated}")')
            print(f"♻ Purge terminée, {len(removed)} entrée(s) seront retraduites.\n")
        else:
            print(f"✅ [Audit {locale.code}] Cache propre, aucune fuite détectée.")
        return removed

    # -----------------------------------
    # 🔹 Traduction
    # -----------------------------------
    def translate_file(self, path: Path, locales: Sequence[Locale]) -> list[Path]:
        """
        Traduit un fichier source dans toutes les langues demandées.

        Returns:
            Chemins des fichiers localisés écrits
        """
        print(f"\n📄 {path.name}")
        content = path.read_bytes()
        page = path.stem

        written: list[Path] = []
        last_model = ""

        for locale in locales:
            model = locale.model(self.settings)
            if last_model and model != last_model:
                print(f"🔄 Changement de modèle : {last_model} → {model}")
                print("⏳ Le chargement peut prendre 30 à 60 secondes...")
                self.backend.unload(last_model)
            last_model = model

            self.cache.load_from_storage(locale.code)
            if self.leak_scan:
                self.audit_leakage(locale)

            print(f"🌍 {locale.code} (modèle : {model})")
            started = time.perf_counter()

            doc = parse_document(content)
            entries = list(iter_entries(doc))
            outcomes = self.worker.run(entries, locale, page, model)

            for entry, outcome in zip(entries, outcomes):
                if outcome.text is not None:
                    set_value(entry, outcome.text)

            output = localized_path(path, locale.code)
            save_document(doc, output)
            written.append(output)

            elapsed = time.perf_counter() - started
            print(f"✅ {output.name} écrit ({elapsed:.2f} s)\n")

        if last_model:
            self.backend.unload(last_model)
        return written

    def translate(
        self,
        locales: Optional[Sequence[Locale]] = None,
        folders: Optional[Sequence[Path]] = None,
        resources: Optional[Iterable[str]] = None,
    ) -> RunSummary:
        """
        Traduit toutes les ressources sélectionnées.

        Args:
            locales: Langues cibles (défaut: toutes)
            folders: Dossiers de ressources (défaut: Resources/ du projet)
            resources: Noms de ressources à traduire (défaut: toutes)

        Returns:
            Le bilan de l'exécution (aussi écrit dans le journal final)
        """
        locales = list(locales or LOCALES.values())
        folders = list(folders or [self.paths.resources_dir])
        resources = list(resources or [])

        files = find_resx_files(
            folders, resources, self.excluded_dir, [locale.code for locale in LOCALES.values()]
        )
        if not files:
            logger.warning("⚠ Aucun fichier .resx à traduire")

        print("🚀 Démarrage de la traduction...")
        for path in files:
            self.translate_file(path, locales)

        self.summary.write(self.paths.final_log_dir, RunSummary.run_name(folders, resources))
        print("\n🎉 Terminé")
        return self.summary
