import datetime
import json
import time
from pathlib import Path
from typing import Iterable, Optional

import requests

from ..config import BackendSettings
from ..exceptions import BackendError
from ..logger import get_logger, get_session_log_path

logger = get_logger(__name__)

CONNECT_TIMEOUT = 10.0
HEALTH_TIMEOUT = 5.0


class OllamaBackend:
    """
    Client HTTP du serveur Ollama local.

      - generate() : un prompt, une réponse (streamée en lignes JSON),
      - unload() : libère la mémoire d'un modèle (keep_alive = 0),
      - is_running() : test de disponibilité du serveur.

    Un seul appel à la fois, sans nouvelle tentative : un échec lève
    BackendError et c'est à l'appelant de passer à l'entrée suivante.
    Chaque requête est journalisée dans son propre fichier de session.
    """

    def __init__(
        self,
        settings: Optional[BackendSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or BackendSettings()
        self.session = session or requests.Session()

        # Compteur pour nommage unique des logs
        self._log_counter = 0

    @property
    def generate_url(self) -> str:
        return f"{self.settings.url}/api/generate"

    # -----------------------------------
    # 🔹 Gestion du log
    # -----------------------------------
    def _create_log(self, model: str, prompt: str, context: Optional[str] = None) -> Path:
        """
        Écrit l'en-tête et le prompt d'une requête dans un fichier de session.

        Args:
            model: Modèle interrogé
            prompt: Prompt complet envoyé
            context: Contexte pour nommer le fichier (ex: "fr_MenuOpen")

        Returns:
            Chemin du fichier, complété par _append_response()
        """
        timestamp = datetime.datetime.now().isoformat().replace(":", "-")

        self._log_counter += 1
        if context:
            safe_context = "".join(c if c.isalnum() or c in "-_" else "_" for c in context)
            filename = f"llm_{safe_context}_{self._log_counter:04d}_{timestamp}.log"
        else:
            filename = f"llm_{self._log_counter:04d}_{timestamp}.log"

        log_path = get_session_log_path(filename)
        header = (
            f"=== LLM REQUEST LOG ===\n"
            f"Timestamp : {timestamp}\n"
            f"Model     : {model}\n"
            f"Context   : {context or '-'}\n"
            f"Prompt len: {len(prompt)} chars\n"
            f"{'-'*40}\n\n"
            f"--- PROMPT ---\n{prompt}\n\n"
            f"--- RESPONSE ---\n"
        )
        with open(log_path, "w", encoding="utf-8") as f:
            f.write(header)
        return log_path

    def _append_response(self, log_path: Path, response: str):
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(response.strip() + "\n")

    # -----------------------------------
    # 🔹 Requêtes
    # -----------------------------------
    def _payload(self, model: str, prompt: str) -> dict:
        return {
            "model": model,
            "prompt": prompt,
            "stream": True,
            "options": {
                "temperature": self.settings.temperature,
                "num_thread": self.settings.num_thread,
                "num_ctx": self.settings.num_ctx,
            },
            "keep_alive": self.settings.keep_alive,
        }

    @staticmethod
    def _collect(lines: Iterable, model: str) -> str:
        """Concatène les fragments `response` des lignes JSON streamées."""
        parts: list[str] = []
        for line in lines:
            if not line or not line.strip():
                continue
            try:
                data = json.loads(line)
            except ValueError as e:
                raise BackendError(f"Ligne JSON illisible dans la réponse : {e}", model) from e
            if not isinstance(data, dict):
                raise BackendError("Ligne JSON inattendue dans la réponse", model)
            if data.get("error"):
                raise BackendError(f"Erreur renvoyée par Ollama : {data['error']}", model)
            parts.append(data.get("response") or "")
        return "".join(parts)

    def generate(self, prompt: str, model: str, context: Optional[str] = None) -> str:
        """
        Envoie un prompt au modèle et retourne la réponse complète.

        Args:
            prompt: Prompt complet
            model: Nom du modèle Ollama
            context: Contexte optionnel pour nommer le fichier de log

        Returns:
            Texte généré (concaténation des fragments, espaces de bord retirés)

        Raises:
            BackendError: Erreur réseau, statut HTTP non 2xx ou ligne JSON invalide
        """
        log_path = self._create_log(model, prompt, context)

        try:
            response = self.session.post(
                self.generate_url,
                json=self._payload(model, prompt),
                stream=True,
                timeout=(CONNECT_TIMEOUT, self.settings.timeout),
            )
            try:
                response.raise_for_status()
                text = self._collect(response.iter_lines(), model)
            finally:
                response.close()

        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self._append_response(log_path, f"[ERREUR HTTP {status}: {e}]")
            raise BackendError(f"Statut HTTP {status} : {e}", model, status) from e

        except requests.RequestException as e:
            self._append_response(log_path, f"[ERREUR RÉSEAU: {e}]")
            raise BackendError(f"Requête échouée : {e}", model) from e

        except BackendError as e:
            self._append_response(log_path, f"[ERREUR: {e}]")
            raise

        self._append_response(log_path, text)
        logger.info(f"✅ Requête LLM réussie ({len(prompt)} chars, modèle {model})")
        return text.strip()

    def unload(self, model: str) -> bool:
        """
        Décharge un modèle de la mémoire (keep_alive = 0).

        Un échec est loggé sans interrompre le traitement.
        """
        if not model:
            return False

        try:
            response = self.session.post(
                self.generate_url,
                json={"model": model, "keep_alive": 0},
                timeout=(CONNECT_TIMEOUT, self.settings.timeout),
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"⚠ Impossible de décharger {model} : {e}")
            return False

        print(f"\n🧠 Mémoire libérée : {model}. Stabilisation du système...")
        if self.settings.unload_settle_delay > 0:
            time.sleep(self.settings.unload_settle_delay)
        return True

    def is_running(self) -> bool:
        """Vérifie que le serveur répond sur /api/tags."""
        try:
            response = self.session.get(f"{self.settings.url}/api/tags", timeout=HEALTH_TIMEOUT)
        except requests.RequestException:
            return False
        return response.ok
