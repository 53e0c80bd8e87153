"""
Tests du client Ollama.

La session HTTP est remplacée par un MagicMock : aucun serveur n'est
contacté.
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from resx_translator.exceptions import BackendError
from resx_translator.llm import OllamaBackend
from resx_translator.logger import LogSession


def stream_response(*chunks, status_code: int = 200):
    """Réponse streamée : une ligne JSON par fragment."""
    response = MagicMock()
    response.status_code = status_code
    response.iter_lines.return_value = [
        chunk if isinstance(chunk, (bytes, str)) else json.dumps(chunk).encode("utf-8")
        for chunk in chunks
    ]
    if status_code >= 400:
        error = requests.HTTPError(f"{status_code} Server Error", response=response)
        response.raise_for_status.side_effect = error
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def backend(backend_settings, session):
    return OllamaBackend(backend_settings, session=session)


class TestGenerate:
    """Tests de l'appel de génération."""

    def test_fragments_concatenated(self, backend, session):
        session.post.return_value = stream_response(
            {"response": "Ouvrir "}, {"response": "le fichier"}, {"response": "", "done": True}
        )

        assert backend.generate("prompt", "translategemma:27b") == "Ouvrir le fichier"

    def test_payload(self, backend, session):
        session.post.return_value = stream_response({"response": "ok"})

        backend.generate("Traduire ceci", "translategemma:27b")

        args, kwargs = session.post.call_args
        assert args[0] == "http://127.0.0.1:11434/api/generate"
        assert kwargs["stream"] is True
        payload = kwargs["json"]
        assert payload["model"] == "translategemma:27b"
        assert payload["prompt"] == "Traduire ceci"
        assert payload["stream"] is True
        assert payload["options"] == {"temperature": 0.0, "num_thread": 8, "num_ctx": 4096}
        assert payload["keep_alive"] == "5m"

    def test_response_closed(self, backend, session):
        response = stream_response({"response": "ok"})
        session.post.return_value = response

        backend.generate("prompt", "m")

        response.close.assert_called_once()

    def test_blank_lines_ignored(self, backend, session):
        session.post.return_value = stream_response(b"", {"response": "Bonjour"}, b"  ")

        assert backend.generate("prompt", "m") == "Bonjour"

    def test_http_error(self, backend, session):
        session.post.return_value = stream_response(status_code=500)

        with pytest.raises(BackendError) as exc_info:
            backend.generate("prompt", "m")

        assert exc_info.value.status_code == 500
        assert exc_info.value.model == "m"

    def test_network_error(self, backend, session):
        session.post.side_effect = requests.ConnectionError("connexion refusée")

        with pytest.raises(BackendError, match="connexion refusée"):
            backend.generate("prompt", "m")

    def test_malformed_line(self, backend, session):
        session.post.return_value = stream_response({"response": "Bon"}, b"{pas du json")

        with pytest.raises(BackendError, match="illisible"):
            backend.generate("prompt", "m")

    def test_error_field(self, backend, session):
        session.post.return_value = stream_response({"error": "model not found"})

        with pytest.raises(BackendError, match="model not found"):
            backend.generate("prompt", "m")

    def test_request_log_written(self, backend, session):
        """Chaque requête produit un fichier de log dans la session."""
        session.post.return_value = stream_response({"response": "Ouvrir"})

        backend.generate("PROMPT COMPLET", "m", context="fr_Menu.Open")

        logs = list(LogSession.get_session_dir().glob("llm_fr_Menu_Open_0001_*.log"))
        assert len(logs) == 1
        content = logs[0].read_text(encoding="utf-8")
        assert "PROMPT COMPLET" in content
        assert content.rstrip().endswith("Ouvrir")

    def test_failure_logged_in_request_log(self, backend, session):
        session.post.return_value = stream_response(status_code=404)

        with pytest.raises(BackendError):
            backend.generate("prompt", "m", context="de_Title")

        (log_file,) = LogSession.get_session_dir().glob("llm_de_Title_*.log")
        assert "ERREUR HTTP 404" in log_file.read_text(encoding="utf-8")


class TestUnload:
    def test_unload_payload(self, backend, session, capsys):
        session.post.return_value = MagicMock()

        assert backend.unload("translategemma:27b") is True

        _, kwargs = session.post.call_args
        assert kwargs["json"] == {"model": "translategemma:27b", "keep_alive": 0}
        assert "Mémoire libérée" in capsys.readouterr().out

    def test_unload_failure_not_raised(self, backend, session, caplog):
        session.post.side_effect = requests.ConnectionError("refusé")

        assert backend.unload("m") is False
        assert "décharger" in caplog.text

    def test_unload_without_model(self, backend, session):
        assert backend.unload("") is False
        session.post.assert_not_called()


class TestIsRunning:
    def test_running(self, backend, session):
        session.get.return_value = MagicMock(ok=True)

        assert backend.is_running() is True
        assert session.get.call_args[0][0].endswith("/api/tags")

    def test_not_running(self, backend, session):
        session.get.side_effect = requests.ConnectionError()

        assert backend.is_running() is False
