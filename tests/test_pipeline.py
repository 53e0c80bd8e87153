"""
Tests de la chaîne de résolution d'une entrée.

Le backend est remplacé par FakeBackend (conftest) : les réponses du
modèle sont prévues par chaque test.
"""

import re

import pytest

from conftest import FakeBackend, masked_text_of
from resx_translator.exceptions import BackendError
from resx_translator.locales import get_locale
from resx_translator.quality import QualityGate
from resx_translator.review import ReviewLog, RunSummary
from resx_translator.store import TranslationCache
from resx_translator.stores import (
    EchoExclusionStore,
    GlossaryStore,
    KeyOverrideStore,
    NoTranslateStore,
)
from resx_translator.translation import (
    LOOKUP_CHAIN,
    ResolvedBy,
    TranslationPipeline,
)
from resx_translator.translation.resx_handler import ResxEntry
from resx_translator.worker import TranslationWorker


@pytest.fixture
def make_pipeline(project_paths, backend_settings):
    """Fabrique un pipeline branché sur le projet temporaire."""

    def _make(backend, force_overwrite=False, locale="fr"):
        cache = TranslationCache(project_paths.cache_dir)
        cache.load_from_storage(locale)
        return TranslationPipeline(
            backend=backend,
            cache=cache,
            glossary=GlossaryStore(project_paths.glossary_file),
            no_translate=NoTranslateStore(project_paths.no_translate_file),
            key_overrides=KeyOverrideStore(project_paths.key_overrides_file),
            quality=QualityGate(EchoExclusionStore(project_paths.echo_file)),
            review=ReviewLog(project_paths.review_log),
            summary=RunSummary(),
            settings=backend_settings,
            force_overwrite=force_overwrite,
        )

    return _make


def test_lookup_chain_order():
    assert LOOKUP_CHAIN == (
        ResolvedBy.KEY_OVERRIDE,
        ResolvedBy.GLOSSARY,
        ResolvedBy.CACHE,
        ResolvedBy.BACKEND,
    )


class TestLookupChain:
    """Tests de la priorité des couches."""

    def test_key_override_wins_over_everything(self, make_pipeline, fake_backend):
        """La valeur figée passe avant le glossaire et un cache contradictoire."""
        pipeline = make_pipeline(fake_backend, locale="km")
        pipeline.cache.put("km", "Language", "ភាសាខុស")

        outcome = pipeline.translate(get_locale("km"), "Language", "Language")

        assert outcome.text == "ភាសាអង់គ្លេស"
        assert outcome.resolved_by is ResolvedBy.KEY_OVERRIDE
        assert fake_backend.calls == []
        # La valeur figée n'est jamais écrite dans le cache
        assert pipeline.cache.try_get("km", "Language") == "ភាសាខុស"
        assert "km Language | ភាសាអង់គ្លេស" in pipeline.summary.render()

    def test_glossary_exact_written_to_cache(self, make_pipeline, fake_backend):
        pipeline = make_pipeline(fake_backend)

        outcome = pipeline.translate(get_locale("fr"), "Settings", "Settings")

        assert outcome.text == "Paramètres"
        assert outcome.resolved_by is ResolvedBy.GLOSSARY
        assert fake_backend.calls == []
        assert pipeline.cache.try_get("fr", "Settings") == "Paramètres"

    def test_glossary_matches_key_not_text(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: "Menu des paramètres")
        pipeline = make_pipeline(backend)

        outcome = pipeline.translate(get_locale("fr"), "SettingsMenu", "Settings")

        assert outcome.resolved_by is ResolvedBy.BACKEND
        assert len(backend.calls) == 1

    def test_second_identical_source_served_from_cache(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: "Ouvrir le fichier")
        pipeline = make_pipeline(backend)
        locale = get_locale("fr")

        first = pipeline.translate(locale, "MenuOpenFile", "Open file")
        second = pipeline.translate(locale, "ToolbarOpenFile", "Open file")

        assert first.resolved_by is ResolvedBy.BACKEND
        assert second.resolved_by is ResolvedBy.CACHE
        assert second.text == "Ouvrir le fichier"
        assert len(backend.calls) == 1

    def test_force_overwrite_skips_cache(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: "Ouvrir un fichier")
        pipeline = make_pipeline(backend, force_overwrite=True)
        pipeline.cache.put("fr", "Open file", "Ancienne traduction")

        outcome = pipeline.translate(get_locale("fr"), "MenuOpenFile", "Open file")

        assert outcome.resolved_by is ResolvedBy.BACKEND
        assert pipeline.cache.try_get("fr", "Open file") == "Ouvrir un fichier"

    def test_force_overwrite_keeps_overrides(self, make_pipeline, fake_backend):
        pipeline = make_pipeline(fake_backend, force_overwrite=True, locale="km")

        outcome = pipeline.translate(get_locale("km"), "Language", "Language")

        assert outcome.resolved_by is ResolvedBy.KEY_OVERRIDE
        assert fake_backend.calls == []


class TestBackendLayer:
    """Tests du passage par le modèle."""

    def test_backend_failure_leaves_entry_untranslated(self, make_pipeline, failing_backend):
        pipeline = make_pipeline(failing_backend)

        outcome = pipeline.translate(get_locale("fr"), "MenuClose", "Close")

        assert outcome.text is None
        assert not outcome.translated
        assert "connexion refusée" in outcome.error
        assert pipeline.cache.try_get("fr", "Close") is None

    def test_batch_continues_after_failure(self, make_pipeline):
        def _respond(prompt, model):
            if masked_text_of(prompt) == "Close":
                raise BackendError("timeout", model)
            return "Ouvrir"

        pipeline = make_pipeline(FakeBackend(_respond))
        locale = get_locale("fr")

        results = [
            pipeline.translate(locale, "A", "Close"),
            pipeline.translate(locale, "B", "Open now"),
        ]

        assert [r.translated for r in results] == [False, True]

    def test_empty_response_not_cached(self, make_pipeline):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: '  "" '))

        outcome = pipeline.translate(get_locale("fr"), "Title", "Welcome")

        assert outcome.text is None
        assert outcome.error == "réponse vide"
        assert pipeline.cache.try_get("fr", "Welcome") is None

    def test_output_sanitized_and_finalized(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: '\u200b"Bienvenue [New fr meta]"\n')
        pipeline = make_pipeline(backend)

        outcome = pipeline.translate(get_locale("fr"), "Title", "Welcome")

        assert outcome.text == "Bienvenue"

    def test_model_and_log_context(self, make_pipeline, fake_backend, backend_settings):
        pipeline = make_pipeline(fake_backend)

        pipeline.translate(get_locale("fr"), "Title", "Welcome")
        pipeline.translate(get_locale("ja"), "Title", "Welcome", model="custom:7b")

        assert fake_backend.calls[0][1] == backend_settings.western_model
        assert fake_backend.calls[0][2] == "fr_Title"
        assert fake_backend.calls[1][1] == "custom:7b"

    def test_prompt_built_from_snapshots(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: "Ouvrir les paramètres BOINC")
        pipeline = make_pipeline(backend)
        pipeline.cache.put("fr", "Reset settings", "Réinitialiser les paramètres")

        pipeline.translate(get_locale("fr"), "Menu", "Open BOINC settings")

        prompt = backend.calls[0][0]
        assert "* Settings == Paramètres" in prompt
        assert "* Open == Ouvrir" in prompt
        assert "STRICT: Do NOT translate or modify these terms: BOINC" in prompt
        assert "- Reset settings => Réinitialiser les paramètres" in prompt
        assert masked_text_of(prompt) == "Open BOINC settings"

    def test_numbers_masked_in_prompt(self, make_pipeline, fake_backend):
        pipeline = make_pipeline(fake_backend)

        pipeline.translate(get_locale("fr"), "Pager", "Page 3 of 12")

        assert masked_text_of(fake_backend.calls[0][0]) == "Page [[NUM0]] of [[NUM1]]"

    def test_native_digits_end_to_end(self, make_pipeline):
        backend = FakeBackend(lambda prompt, model: "หน้า [[NUM0]] จาก [[NUM1]]")
        pipeline = make_pipeline(backend, locale="th")

        outcome = pipeline.translate(get_locale("th"), "Pager", "Page 3 of 12")

        assert outcome.text == "หน้า ๓ จาก ๑๒"
        assert not re.search(r"[0-9]", outcome.text)
        assert not outcome.needs_review


class TestReview:
    """Tests du signalement pour relecture."""

    def test_echo_logged_for_review(self, make_pipeline, project_paths):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "Help"))

        outcome = pipeline.translate(get_locale("fr"), "HelpButton", "Help", page="Menu")

        assert outcome.needs_review
        # La traduction signalée est quand même acceptée et mise en cache
        assert pipeline.cache.try_get("fr", "Help") == "Help"
        content = project_paths.review_log.read_text(encoding="utf-8")
        assert "⚠ Menu [fr HelpButton]" in content
        assert pipeline.summary.flagged == 1

    def test_excluded_page_not_logged(self, make_pipeline, project_paths):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "Help"))

        pipeline.translate(get_locale("fr"), "HelpButton", "Help", page="BOINC")

        assert not project_paths.review_log.exists()
        assert pipeline.summary.flagged == 0

    def test_excluded_echo_not_logged(self, make_pipeline, project_paths):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "OK"))

        outcome = pipeline.translate(get_locale("fr"), "Confirm", "OK", page="Dialog")

        assert outcome.report.echo
        assert not outcome.needs_review
        assert not project_paths.review_log.exists()

    def test_latin_leak_logged(self, make_pipeline, project_paths):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "您好World"), locale="zh")

        outcome = pipeline.translate(get_locale("zh"), "Greeting", "Hello World", page="Home")

        assert outcome.report.leak
        assert "[zh Greeting]" in project_paths.review_log.read_text(encoding="utf-8")

    def test_lost_token_flagged(self, make_pipeline):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "Étape quatre"))

        outcome = pipeline.translate(get_locale("fr"), "Step", "Step 4", page="Wizard")

        assert outcome.report.missing_tokens == ["[[NUM0]]"]
        assert outcome.needs_review

    def test_token_on_dropped_line_flagged(self, make_pipeline, project_paths):
        """Un jeton sur une ligne retirée par la mise en forme est signalé."""
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "Page\n[[NUM0]]"))

        outcome = pipeline.translate(get_locale("fr"), "PageLabel", "Page 3", page="Viewer")

        assert outcome.text == "Page"
        assert outcome.report.missing_tokens == ["[[NUM0]]"]
        assert outcome.needs_review
        assert "[fr PageLabel]" in project_paths.review_log.read_text(encoding="utf-8")

    def test_unknown_token_flagged(self, make_pipeline, project_paths):
        pipeline = make_pipeline(FakeBackend(lambda prompt, model: "Étape [[NUM0]] [[NUM1]]"))

        outcome = pipeline.translate(get_locale("fr"), "Step", "Step 4", page="Wizard")

        assert outcome.text == "Étape 4 [[NUM1]]"
        assert outcome.report.stray_tokens == ["[[NUM1]]"]
        assert outcome.report.missing_tokens == []
        assert outcome.needs_review
        assert "jetons inconnus [[NUM1]]" in outcome.report.reasons
        assert "[fr Step]" in project_paths.review_log.read_text(encoding="utf-8")


class TestTranslationWorker:
    """Tests du traitement d'un lot d'entrées."""

    def test_one_outcome_per_entry_in_order(self, make_pipeline, fake_backend):
        worker = TranslationWorker(make_pipeline(fake_backend))
        entries = [
            ResxEntry("Settings", "Settings", node=None),
            ResxEntry("Title", "Welcome", node=None),
        ]

        outcomes = worker.run(entries, get_locale("fr"), page="Home")

        assert [o.key for o in outcomes] == ["Settings", "Title"]
        assert [o.resolved_by for o in outcomes] == [ResolvedBy.GLOSSARY, ResolvedBy.BACKEND]

    def test_unexpected_error_does_not_stop_batch(self, make_pipeline, caplog):
        def _respond(prompt, model):
            if "Broken" in prompt:
                raise RuntimeError("bug inattendu")
            return "Bienvenue"

        worker = TranslationWorker(make_pipeline(FakeBackend(_respond)))
        entries = [
            ResxEntry("A", "Broken", node=None),
            ResxEntry("B", "Welcome", node=None),
        ]

        outcomes = worker.run(entries, get_locale("fr"), page="Home")

        assert outcomes[0].error == "bug inattendu"
        assert not outcomes[0].translated
        assert outcomes[1].text == "Bienvenue"
        assert "bug inattendu" in caplog.text

    def test_keyboard_interrupt_propagates(self, make_pipeline):
        def _interrupt(prompt, model):
            raise KeyboardInterrupt

        worker = TranslationWorker(make_pipeline(FakeBackend(_interrupt)))

        with pytest.raises(KeyboardInterrupt):
            worker.run([ResxEntry("A", "Welcome", node=None)], get_locale("fr"), page="Home")
