"""
Tests de la ligne de commande.
"""

import pytest

from conftest import FakeBackend
from resx_translator import __main__ as cli
from resx_translator.config import ROOT_ENV_VAR
from resx_translator.locales import LOCALES


class StubServer:
    def __init__(self, backend):
        self.backend = backend
        self.started = False
        self.stopped = False

    def ensure_running(self):
        self.started = True
        return True

    def stop(self):
        self.stopped = True


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args([])

        assert args.languages is None
        assert args.pages is None
        assert args.directories is None
        assert args.force is False
        assert args.leak_scan is False

    def test_all_options(self):
        args = cli.build_parser().parse_args(
            ["-l", "zh", "km", "-p", "seahorse", "-d", "city", "offices", "-f", "-hl"]
        )

        assert args.languages == ["zh", "km"]
        assert args.pages == ["seahorse"]
        assert args.directories == ["city", "offices"]
        assert args.force is True
        assert args.leak_scan is True

    def test_long_leak_scan_flag(self):
        assert cli.build_parser().parse_args(["--leak-scan"]).leak_scan is True


class TestSelectLocales:
    def test_none_means_all(self):
        assert cli.select_locales(None) == list(LOCALES.values())

    def test_unknown_codes_skipped(self, capsys):
        selected = cli.select_locales(["ZH", "xx", "km"])

        assert [locale.code for locale in selected] == ["zh", "km"]
        assert "'xx'" in capsys.readouterr().out

    def test_no_valid_code_means_all(self):
        assert cli.select_locales(["xx", "yy"]) == list(LOCALES.values())

    def test_empty_flag_means_all(self):
        assert cli.select_locales([]) == list(LOCALES.values())


class TestSelectFolders:
    @pytest.fixture
    def resources(self, tmp_path):
        root = tmp_path / "Resources"
        for name in ("City", "Offices", "Beaches"):
            (root / name).mkdir(parents=True)
        return root

    def test_default_is_resources(self, resources):
        assert cli.select_folders(resources, None) == [resources]

    def test_case_insensitive_match(self, resources):
        folders = cli.select_folders(resources, ["city", "OFFICES"])

        assert folders == [resources / "City", resources / "Offices"]

    def test_unknown_folder_skipped(self, resources, capsys):
        folders = cli.select_folders(resources, ["city", "moon"])

        assert folders == [resources / "City"]
        assert "'moon'" in capsys.readouterr().out

    def test_nothing_found_falls_back(self, resources):
        assert cli.select_folders(resources, ["moon"]) == [resources]


class TestMain:
    def test_missing_project_root(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path / "nowhere"))

        assert cli.main([]) == 1
        assert "introuvable" in capsys.readouterr().err

    def test_full_run(self, project_paths, backend_settings, monkeypatch):
        page = project_paths.resources_dir / "Home" / "Home.resx"
        page.parent.mkdir(parents=True)
        page.write_text(
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<root><data name="Title"><value>Welcome</value></data></root>\n',
            encoding="utf-8",
        )
        backend = FakeBackend(lambda prompt, model: "Bienvenue")
        servers = []

        def _server(b):
            servers.append(StubServer(b))
            return servers[-1]

        monkeypatch.setenv(ROOT_ENV_VAR, str(project_paths.root))
        monkeypatch.setattr(cli, "lock_config", lambda: None)
        monkeypatch.setattr(cli, "OllamaBackend", lambda settings: backend)
        monkeypatch.setattr(cli, "OllamaServer", _server)

        assert cli.main(["-l", "fr", "-p", "Home"]) == 0

        assert "Bienvenue" in page.with_name("Home.fr.resx").read_text(encoding="utf-8")
        assert (project_paths.final_log_dir / "Home.log").exists()
        assert servers[0].started and servers[0].stopped

    def test_interrupt_returns_130(self, project_paths, backend_settings, monkeypatch):
        class InterruptingServer(StubServer):
            def ensure_running(self):
                raise KeyboardInterrupt

        servers = []

        def _server(b):
            servers.append(InterruptingServer(b))
            return servers[-1]

        monkeypatch.setenv(ROOT_ENV_VAR, str(project_paths.root))
        monkeypatch.setattr(cli, "lock_config", lambda: None)
        monkeypatch.setattr(cli, "OllamaBackend", lambda settings: FakeBackend())
        monkeypatch.setattr(cli, "OllamaServer", _server)

        assert cli.main([]) == 130
        assert servers[0].stopped
