"""
Démarrage et arrêt d'un serveur `ollama serve` local.

Seul un processus lancé par cet outil est arrêté à la sortie ; un serveur
déjà en cours d'exécution n'est jamais touché.
"""

import subprocess
import time
from typing import Optional

from .llm import OllamaBackend
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_START_TIMEOUT = 20.0
POLL_INTERVAL = 0.5


class OllamaServer:
    """
    Processus Ollama géré par l'outil.

    Example:
        >>> server = OllamaServer(backend)
        >>> server.ensure_running()
        >>> ...
        >>> server.stop()
    """

    def __init__(self, backend: OllamaBackend, command: tuple[str, ...] = ("ollama", "serve")):
        self.backend = backend
        self.command = command
        self.process: Optional[subprocess.Popen] = None

    @property
    def owned(self) -> bool:
        """Vrai si le serveur a été lancé par cet outil et tourne encore."""
        return self.process is not None and self.process.poll() is None

    def ensure_running(self, timeout: float = DEFAULT_START_TIMEOUT) -> bool:
        """
        Lance le serveur s'il ne répond pas, puis attend qu'il soit prêt.

        Returns:
            True si le serveur répond, False après expiration du délai
        """
        if self.backend.is_running():
            return True

        if self.owned:
            print("⚡ Ollama est déjà lancé.")
        else:
            print("⚡ Démarrage du serveur Ollama...")
            try:
                self.process = subprocess.Popen(
                    list(self.command),
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as e:
                logger.error(f"⚠ Impossible de lancer {' '.join(self.command)} : {e}")
                return False

        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.backend.is_running():
                print("✅ Serveur Ollama prêt.")
                return True
            time.sleep(POLL_INTERVAL)

        logger.warning("⚠ Délai dépassé en attendant le serveur Ollama, il n'est peut-être pas prêt.")
        return False

    def stop(self) -> None:
        """Arrête le serveur s'il a été lancé par cet outil."""
        if not self.owned:
            return

        assert self.process is not None
        print("🛑 Arrêt du serveur Ollama...")
        self.process.terminate()
        try:
            self.process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
        self.process = None
