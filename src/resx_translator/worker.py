from collections import Counter
from typing import Optional, Sequence

from tqdm import tqdm

from .locales import Locale
from .logger import get_logger
from .translation.pipeline import ResolvedBy, TranslationOutcome, TranslationPipeline
from .translation.resx_handler import ResxEntry

logger = get_logger(__name__)


class TranslationWorker:
    """Traite les entrées d'un document, une à la fois, pour une langue."""

    def __init__(self, pipeline: TranslationPipeline):
        self.pipeline = pipeline

    def run(
        self,
        entries: Sequence[ResxEntry],
        locale: Locale,
        page: str,
        model: Optional[str] = None,
    ) -> list[TranslationOutcome]:
        """
        Traduit les entrées dans l'ordre du document.

        Une erreur inattendue sur une entrée est loggée et comptée, le
        traitement passe à l'entrée suivante.

        Returns:
            Un TranslationOutcome par entrée, dans le même ordre
        """
        outcomes: list[TranslationOutcome] = []
        errors_count = 0

        with tqdm(
            total=len(entries),
            desc=f"{page} [{locale.code}]",
            unit="entrée",
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
        ) as pbar:
            for entry in entries:
                try:
                    outcome = self.pipeline.translate(
                        locale, entry.key, entry.source_text, page=page, model=model
                    )
                    outcomes.append(outcome)

                except KeyboardInterrupt:
                    pbar.write("\n❌ Traduction interrompue par l'utilisateur")
                    raise

                except Exception as e:
                    logger.exception(f"Erreur inattendue [{locale.code} {entry.key}] : {e}")
                    errors_count += 1
                    outcomes.append(
                        TranslationOutcome(
                            key=entry.key,
                            source=entry.source_text,
                            locale=locale.code,
                            error=str(e),
                        )
                    )
                    pbar.write(
                        f"\n❌ ERREUR INATTENDUE #{errors_count}: {type(e).__name__}: {e}\n"
                    )

                finally:
                    pbar.update(1)

            self._print_summary(pbar, outcomes, errors_count)

        return outcomes

    def _print_summary(self, pbar, outcomes: list[TranslationOutcome], errors_count: int):
        """Affiche le résumé de la passe si quelque chose mérite l'attention."""
        by_layer = Counter(o.resolved_by for o in outcomes if o.translated)
        failed = sum(1 for o in outcomes if not o.translated)
        flagged = sum(1 for o in outcomes if o.needs_review)

        if not (failed or flagged or errors_count or by_layer[ResolvedBy.BACKEND]):
            return

        pbar.write(f"\n{'='*60}")
        pbar.write("📊 Résumé de la traduction:")
        if by_layer[ResolvedBy.BACKEND]:
            pbar.write(f"   🆕 Nouvelles traductions: {by_layer[ResolvedBy.BACKEND]}")
        cached = by_layer[ResolvedBy.CACHE]
        if cached:
            pbar.write(f"   🗂  Depuis le cache: {cached}")
        fixed = by_layer[ResolvedBy.KEY_OVERRIDE] + by_layer[ResolvedBy.GLOSSARY]
        if fixed:
            pbar.write(f"   📘 Glossaire / valeurs figées: {fixed}")
        if flagged:
            pbar.write(f"   ⚠ À relire: {flagged}")
        if failed:
            pbar.write(f"   ⏭️  Entrées non traduites: {failed}")
        if errors_count:
            pbar.write(f"   ❌ Erreurs: {errors_count}")
        if failed or errors_count:
            pbar.write("   📁 Consultez les logs dans 'logs/' pour plus de détails")
        pbar.write(f"{'='*60}\n")
