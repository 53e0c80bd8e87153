"""
Module de configuration du logging pour resx-translator.

Tous les modules obtiennent leur logger via get_logger(__name__) afin de
partager la même sortie console et le même répertoire de session.

Fonctionnalités :
- Un répertoire par exécution : logs/run_YYYYMMDD_HHMMSS/
- Fichiers de log créés au premier message seulement
- Sortie console via tqdm.write() pour ne pas casser la barre de progression
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import Logger_Level


# ============================================================
# 🔹 Session de logs
# ============================================================


class LogSession:
    """
    Singleton regroupant tous les logs d'une exécution.

    Le répertoire logs/run_YYYYMMDD_HHMMSS/ est choisi au premier accès
    et réutilisé jusqu'à reset().
    """

    _instance: Optional["LogSession"] = None
    _session_dir: Optional[Path] = None
    base_dir: Path = Path("logs")

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if LogSession._session_dir is not None:
            return

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        LogSession._session_dir = LogSession.base_dir / f"run_{timestamp}"

    @classmethod
    def get_session_dir(cls) -> Path:
        """Retourne le répertoire de la session en cours (sans le créer)."""
        if cls._session_dir is None:
            cls()
        assert cls._session_dir is not None
        return cls._session_dir

    @classmethod
    def reset(cls, base_dir: Optional[Path] = None):
        """Reset la session (utile pour les tests)."""
        cls._instance = None
        cls._session_dir = None
        if base_dir is not None:
            cls.base_dir = base_dir


# ============================================================
# 🔹 Handlers
# ============================================================


class TqdmLoggingHandler(logging.Handler):
    """Handler console qui écrit via tqdm.write() (compatible barres de progression)."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except Exception:
            self.handleError(record)


class LazyFileHandler(logging.Handler):
    """
    Handler qui crée le fichier de log seulement au premier message.

    Le chemin est résolu au moment de l'émission : un reset() de la session
    entre deux runs (tests) redirige donc les messages suivants.
    """

    def __init__(
        self,
        filename: str,
        encoding: str = "utf-8",
        level: int = logging.NOTSET,
    ):
        super().__init__(level)
        self.filename = filename
        self.encoding = encoding
        self._handler: Optional[logging.FileHandler] = None
        self._path: Optional[Path] = None

    def _ensure_handler(self) -> logging.FileHandler:
        path = LogSession.get_session_dir() / self.filename
        if self._handler is None or self._path != path:
            if self._handler is not None:
                self._handler.close()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(path, mode="a", encoding=self.encoding)
            if self.formatter:
                self._handler.setFormatter(self.formatter)
            self._path = path
        return self._handler

    def emit(self, record):
        try:
            self._ensure_handler().emit(record)
        except Exception:
            self.handleError(record)

    def close(self):
        if self._handler:
            self._handler.close()
        super().close()


# ============================================================
# 🔹 Configuration des loggers
# ============================================================


def setup_logger(
    name: str,
    level: int = Logger_Level.level,
    console_level: int = Logger_Level.console_level,
    file_level: int = Logger_Level.file_level,
    log_filename: str = "translation.log",
) -> logging.Logger:
    """
    Configure un logger avec sortie console (tqdm) et fichier de session.

    Args:
        name: Nom du logger (généralement __name__ du module)
        level: Niveau global du logger
        console_level: Niveau pour la console
        file_level: Niveau pour le fichier
        log_filename: Nom du fichier dans le répertoire de session

    Returns:
        Logger configuré
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = LazyFileHandler(log_filename)
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def get_logger(name: str, log_filename: Optional[str] = None) -> logging.Logger:
    """
    Récupère un logger existant ou en crée un avec la configuration par défaut.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Traduction démarrée")
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name, log_filename=log_filename or "translation.log")
    return logger


def get_session_log_path(filename: str) -> Path:
    """
    Retourne le chemin d'un fichier dans le répertoire de session (créé si besoin).

    Example:
        >>> get_session_log_path("llm_fr_0001.log")
        PosixPath('logs/run_20251023_143022/llm_fr_0001.log')
    """
    session_dir = LogSession.get_session_dir()
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir / filename
