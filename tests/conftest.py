"""
Configuration pytest pour les tests resx-translator.

Ce fichier contient les fixtures communes à tous les tests.
"""

import json
from pathlib import Path
from typing import Callable, Optional

import pytest

from resx_translator.config import BackendSettings, ProjectPaths
from resx_translator.exceptions import BackendError
from resx_translator.logger import LogSession


@pytest.fixture(autouse=True)
def isolated_log_session(tmp_path):
    """Redirige les logs de session vers un répertoire temporaire."""
    LogSession.reset(base_dir=tmp_path / "logs")
    yield
    LogSession.reset(base_dir=Path("logs"))


@pytest.fixture
def backend_settings():
    """
    Réglages du backend remis aux valeurs par défaut (singleton partagé).

    Le délai de stabilisation après déchargement est mis à zéro.
    """
    settings = BackendSettings()
    settings.__dict__.clear()
    settings.unload_settle_delay = 0.0
    yield settings
    settings.__dict__.clear()


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def project_paths(tmp_path) -> ProjectPaths:
    """
    Projet temporaire avec un dossier config/ rempli.

    Returns:
        ProjectPaths pointant vers tmp_path/project
    """
    root = tmp_path / "project"
    paths = ProjectPaths.for_root(root)

    write_json(
        paths.glossary_file,
        {
            "fr": {"Settings": "Paramètres", "Open": "Ouvrir"},
            "km": {"Language": "ភាសា"},
        },
    )
    write_json(paths.no_translate_file, {"no_translate": ["BOINC", "Kampot"]})
    write_json(paths.echo_file, {"global": ["OK", "BOINC"], "locales": {"km": ["Wi-Fi"]}})
    write_json(paths.key_overrides_file, {"km": {"Language": "ភាសាអង់គ្លេស"}})
    paths.cache_dir.mkdir(parents=True, exist_ok=True)
    paths.resources_dir.mkdir(parents=True, exist_ok=True)
    return paths


class FakeBackend:
    """
    Backend de test : enregistre les appels et renvoie des réponses prévues.

    Attributes:
        calls: Liste des (prompt, model, context) reçus
        unloaded: Modèles déchargés, dans l'ordre
    """

    def __init__(self, responder: Optional[Callable[[str, str], str]] = None):
        self.responder = responder or (lambda prompt, model: "Traduit")
        self.calls: list[tuple[str, str, Optional[str]]] = []
        self.unloaded: list[str] = []

    def generate(self, prompt: str, model: str, context: Optional[str] = None) -> str:
        self.calls.append((prompt, model, context))
        return self.responder(prompt, model)

    def unload(self, model: str) -> bool:
        self.unloaded.append(model)
        return True

    def is_running(self) -> bool:
        return True


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def failing_backend():
    def _fail(prompt, model):
        raise BackendError("connexion refusée", model)

    return FakeBackend(_fail)


def masked_text_of(prompt: str) -> str:
    """Dernier bloc du prompt : le texte masqué envoyé au modèle."""
    return prompt.rsplit("[/INST]", 1)[1].strip()
