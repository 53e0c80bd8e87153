import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ProjectRootNotFoundError


class ConfigBase:
    # Attribut de classe pour le singleton
    _instance = None
    _locked: bool = False

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def lock(self):
        self._locked = True

    def __setattr__(self, name, value):
        if getattr(self, "_locked", False):
            raise AttributeError("Configuration is locked")
        super().__setattr__(name, value)


class TemplateNames(ConfigBase):
    Translate_Template: str = "translate.jinja"


class Logger_Level(ConfigBase):
    level: int = logging.INFO
    console_level: int = logging.WARNING
    file_level: int = logging.DEBUG


class BackendSettings(ConfigBase):
    """
    Paramètres du backend Ollama.

    Valeurs par défaut surchargeables via l'environnement (ou un fichier .env) :
    - OLLAMA_URL : URL de base du serveur (défaut: http://127.0.0.1:11434)
    - OLLAMA_TIMEOUT : timeout de lecture en secondes (défaut: 900)
    - OLLAMA_NUM_THREAD / OLLAMA_NUM_CTX : options matérielles du modèle
    - OLLAMA_KEEP_ALIVE : durée de maintien du modèle en mémoire
    - SEA_MODEL / WESTERN_MODEL : modèles par groupe de langues
    """

    url: str = "http://127.0.0.1:11434"
    timeout: float = 15 * 60
    temperature: float = 0.0
    num_thread: int = 8
    num_ctx: int = 4096
    keep_alive: str = "5m"
    unload_settle_delay: float = 3.0
    sea_model: str = "aisingapore/Gemma-SEA-LION-v4-27B-IT:latest"
    western_model: str = "translategemma:27b"


def load_backend_settings() -> BackendSettings:
    """Charge le .env puis applique les variables OLLAMA_* aux réglages."""
    load_dotenv()
    settings = BackendSettings()

    settings.url = os.getenv("OLLAMA_URL", settings.url).rstrip("/")
    settings.timeout = float(os.getenv("OLLAMA_TIMEOUT", settings.timeout))
    settings.num_thread = int(os.getenv("OLLAMA_NUM_THREAD", settings.num_thread))
    settings.num_ctx = int(os.getenv("OLLAMA_NUM_CTX", settings.num_ctx))
    settings.keep_alive = os.getenv("OLLAMA_KEEP_ALIVE", settings.keep_alive)
    settings.sea_model = os.getenv("SEA_MODEL", settings.sea_model)
    settings.western_model = os.getenv("WESTERN_MODEL", settings.western_model)
    return settings


def lock_config():
    """Verrouille la configuration pour empêcher les modifications ultérieures."""
    Logger_Level().lock()
    TemplateNames().lock()
    BackendSettings().lock()


# ============================================================
# 🔹 Chemins du projet
# ============================================================

ROOT_ENV_VAR = "RESX_TRANSLATOR_ROOT"


@dataclass(frozen=True)
class ProjectPaths:
    """
    Emplacements des entrées et sorties du projet.

    Attributes:
        root: Racine du projet (contient le dossier config/)
        config_dir: Fichiers glossary.json, echo.json, no_translate.json...
        cache_dir: Caches de traduction par langue
        resources_dir: Fichiers .resx sources
        review_log: Journal des traductions à relire
        final_log_dir: Dossier du journal de fin d'exécution
    """

    root: Path
    config_dir: Path
    cache_dir: Path
    resources_dir: Path
    review_log: Path
    final_log_dir: Path

    @property
    def glossary_file(self) -> Path:
        return self.config_dir / "glossary.json"

    @property
    def echo_file(self) -> Path:
        return self.config_dir / "echo.json"

    @property
    def no_translate_file(self) -> Path:
        return self.config_dir / "no_translate.json"

    @property
    def key_overrides_file(self) -> Path:
        return self.config_dir / "key_overrides.json"

    @classmethod
    def for_root(cls, root: Path) -> "ProjectPaths":
        return cls(
            root=root,
            config_dir=root / "config",
            cache_dir=root / "cache",
            resources_dir=root / "Resources",
            review_log=root / "logs" / "review.log",
            final_log_dir=root / "logs",
        )

    @classmethod
    def resolve(cls, start: Optional[Path] = None) -> "ProjectPaths":
        """
        Trouve la racine du projet en remontant jusqu'à un dossier `config/`.

        La variable d'environnement RESX_TRANSLATOR_ROOT, si définie, est
        utilisée telle quelle.

        Raises:
            ProjectRootNotFoundError: Si aucun parent ne contient `config/`
        """
        env_root = os.getenv(ROOT_ENV_VAR)
        if env_root:
            root = Path(env_root)
            if not (root / "config").is_dir():
                raise ProjectRootNotFoundError(str(root))
            return cls.for_root(root)

        start_dir = (start or Path.cwd()).resolve()
        for candidate in (start_dir, *start_dir.parents):
            if (candidate / "config").is_dir():
                return cls.for_root(candidate)

        raise ProjectRootNotFoundError(str(start_dir))
