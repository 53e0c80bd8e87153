"""
Pipeline de traduction d'une entrée vers une langue.

Chaque entrée traverse une chaîne de recherche ordonnée ; la première
couche qui fournit une valeur l'emporte :

    1. KEY_OVERRIDE : traduction figée pour (langue, clé)
    2. GLOSSARY : traduction imposée quand la clé est un terme du glossaire
       (écrite aussi dans le cache)
    3. CACHE : traduction déjà acceptée (ignorée en mode réécriture)
    4. BACKEND : masquage des nombres → prompt → modèle → restauration
       → nettoyage → contrôle qualité → écriture dans le cache

Un échec du backend n'interrompt pas le lot : l'entrée reste non traduite
et le traitement continue.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .. import numeric
from ..config import BackendSettings
from ..exceptions import BackendError
from ..llm import OllamaBackend, PromptAssembler
from ..locales import Locale
from ..logger import get_logger
from ..quality import QualityGate, QualityReport
from ..review import ReviewLog, RunSummary
from ..store import TranslationCache
from ..stores import GlossaryStore, KeyOverrideStore, NoTranslateStore

logger = get_logger(__name__)


class ResolvedBy(Enum):
    KEY_OVERRIDE = "key_override"
    GLOSSARY = "glossary"
    CACHE = "cache"
    BACKEND = "backend"


LOOKUP_CHAIN: tuple[ResolvedBy, ...] = (
    ResolvedBy.KEY_OVERRIDE,
    ResolvedBy.GLOSSARY,
    ResolvedBy.CACHE,
    ResolvedBy.BACKEND,
)


@dataclass
class TranslationOutcome:
    """
    Résultat du passage d'une entrée dans la chaîne.

    Attributes:
        key: Clé de l'entrée
        source: Texte source
        locale: Code langue cible
        text: Traduction retenue (None si le backend a échoué)
        resolved_by: Couche qui a fourni la valeur
        report: Contrôle qualité (traductions du backend uniquement)
        error: Message d'erreur du backend
    """

    key: str
    source: str
    locale: str
    text: Optional[str] = None
    resolved_by: Optional[ResolvedBy] = None
    report: Optional[QualityReport] = None
    error: Optional[str] = None

    @property
    def translated(self) -> bool:
        return self.text is not None

    @property
    def needs_review(self) -> bool:
        return self.report is not None and self.report.needs_review


@dataclass
class EntryRequest:
    """Une entrée à traduire, avec son contexte."""

    key: str
    text: str
    locale: Locale
    page: str = ""
    model: Optional[str] = None


class TranslationPipeline:
    """
    Résout une entrée en parcourant LOOKUP_CHAIN.

    Example:
        >>> pipeline = TranslationPipeline(backend, cache, glossary, no_translate,
        ...                                overrides, QualityGate(echo), review)
        >>> outcome = pipeline.translate(get_locale("fr"), "MenuOpen", "Open", page="Menu")
        >>> outcome.resolved_by
        <ResolvedBy.BACKEND: 'backend'>
    """

    def __init__(
        self,
        backend: OllamaBackend,
        cache: TranslationCache,
        glossary: GlossaryStore,
        no_translate: NoTranslateStore,
        key_overrides: KeyOverrideStore,
        quality: QualityGate,
        review: ReviewLog,
        summary: Optional[RunSummary] = None,
        assembler: Optional[PromptAssembler] = None,
        settings: Optional[BackendSettings] = None,
        force_overwrite: bool = False,
    ):
        self.backend = backend
        self.cache = cache
        self.glossary = glossary
        self.no_translate = no_translate
        self.key_overrides = key_overrides
        self.quality = quality
        self.review = review
        self.summary = summary or RunSummary()
        self.assembler = assembler or PromptAssembler()
        self.settings = settings or BackendSettings()
        self.force_overwrite = force_overwrite

        self._resolvers: dict[ResolvedBy, Callable[[EntryRequest], Optional[TranslationOutcome]]] = {
            ResolvedBy.KEY_OVERRIDE: self._from_key_override,
            ResolvedBy.GLOSSARY: self._from_glossary,
            ResolvedBy.CACHE: self._from_cache,
            ResolvedBy.BACKEND: self._from_backend,
        }

    def translate(
        self,
        locale: Locale,
        key: str,
        text: str,
        page: str = "",
        model: Optional[str] = None,
    ) -> TranslationOutcome:
        """
        Traduit une entrée.

        Args:
            locale: Langue cible
            key: Clé de l'entrée (attribut name du .resx)
            text: Texte source
            page: Nom de la ressource (pour le journal de relecture)
            model: Modèle à utiliser (défaut: modèle de la langue)

        Returns:
            TranslationOutcome ; `text` vaut None si le backend a échoué
        """
        request = EntryRequest(key=key, text=text, locale=locale, page=page, model=model)
        for layer in LOOKUP_CHAIN:
            outcome = self._resolvers[layer](request)
            if outcome is not None:
                return outcome
        raise AssertionError("la couche BACKEND répond toujours")

    def _outcome(self, request: EntryRequest, **kwargs) -> TranslationOutcome:
        return TranslationOutcome(
            key=request.key, source=request.text, locale=request.locale.code, **kwargs
        )

    # -----------------------------------
    # 🔹 Couches de la chaîne
    # -----------------------------------
    def _from_key_override(self, request: EntryRequest) -> Optional[TranslationOutcome]:
        fixed = self.key_overrides.get(request.locale.code, request.key)
        if fixed is None:
            return None

        logger.info(f"📌 [Override {request.locale.code} {request.key}] {fixed}")
        self.summary.add_translation(request.locale.code, request.key, fixed)
        return self._outcome(request, text=fixed, resolved_by=ResolvedBy.KEY_OVERRIDE)

    def _from_glossary(self, request: EntryRequest) -> Optional[TranslationOutcome]:
        value = self.glossary.exact(request.locale.code, request.key)
        if value is None:
            return None

        logger.info(f"📘 [Glossaire {request.locale.code} {request.key}] {request.text} ➡️ {value}")
        self.cache.put(request.locale.code, request.text, value)
        self.summary.add_translation(request.locale.code, request.key, value)
        return self._outcome(request, text=value, resolved_by=ResolvedBy.GLOSSARY)

    def _from_cache(self, request: EntryRequest) -> Optional[TranslationOutcome]:
        if self.force_overwrite:
            return None

        cached = self.cache.try_get(request.locale.code, request.text)
        if cached is None:
            return None

        logger.info(f"🗂 [Cache {request.locale.code} {request.key}] {request.text} ➡️ {cached}")
        self.summary.add_translation(request.locale.code, request.key, cached)
        return self._outcome(request, text=cached, resolved_by=ResolvedBy.CACHE)

    def _from_backend(self, request: EntryRequest) -> TranslationOutcome:
        locale = request.locale
        text = request.text

        # Instantanés observés une seule fois pour tout l'appel
        glossary_table = self.glossary.snapshot()
        no_translate_terms = self.no_translate.snapshot()

        masked, placeholders = numeric.preprocess(text, locale)
        glossary_hits = self.glossary.lookup(locale.code, text, glossary_table)
        no_translate_hits = self.no_translate.lookup(text, no_translate_terms)
        examples = self.cache.history_examples(
            locale.code, text, [term for term, _ in glossary_hits]
        )
        prompt = self.assembler.build(
            masked, locale, glossary_hits, no_translate_hits, examples
        )

        model = request.model or locale.model(self.settings)
        try:
            raw = self.backend.generate(prompt, model, context=f"{locale.code}_{request.key}")
        except BackendError as e:
            logger.warning(f"⚠ Traduction échouée [{locale.code} {request.key}] : {e}")
            return self._outcome(request, resolved_by=ResolvedBy.BACKEND, error=str(e))

        # Jetons contrôlés sur la forme finale, avant restauration
        shaped = self.quality.finalize(text, self.quality.sanitize(raw))
        lost_tokens = numeric.missing_tokens(shaped, placeholders)
        translated = numeric.postprocess(shaped, placeholders, locale)
        stray = numeric.stray_tokens(translated, placeholders)

        if not translated.strip():
            logger.warning(f"⚠ Réponse vide [{locale.code} {request.key}], entrée ignorée")
            return self._outcome(request, resolved_by=ResolvedBy.BACKEND, error="réponse vide")

        report = self.quality.evaluate(locale, text, translated, lost_tokens, stray)
        if report.needs_review and not self.review.is_excluded(request.page):
            logger.warning(
                f"⚠ {request.page} [{locale.code} {request.key}] à relire "
                f"({', '.join(report.reasons)})"
            )
            self.review.write(request.page, locale.code, request.key, text, translated)
            self.summary.add_flagged(request.page, locale.code, request.key, text, translated)

        self.cache.put(locale.code, text, translated)
        self.summary.add_translation(locale.code, request.key, translated)

        mode = "Réécrit" if self.force_overwrite else "Nouveau"
        logger.info(f"🆕 [{mode} {locale.code} {request.key}] {text} ➡️ {translated}")
        return self._outcome(
            request, text=translated, resolved_by=ResolvedBy.BACKEND, report=report
        )
