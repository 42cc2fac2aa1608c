# tests/test_cli.py
"""Tests for the fedstore command line."""

import json
import tempfile
from pathlib import Path

import pytest

from fedstore.cli import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FEDSTORE_HOSTNAME", raising=False)


class TestCli:
    """Test CLI commands."""

    def test_owns_local(self, capsys):
        code = main(["--hostname", "social.example", "owns", "https://Social.Example/users/a"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "local"

    def test_owns_federated(self, capsys):
        main(["--hostname", "social.example", "owns", "https://peer.example/users/b"])
        assert capsys.readouterr().out.strip() == "federated"

    def test_default_hostname(self, capsys):
        main(["owns", "http://localhost/users/a"])
        assert capsys.readouterr().out.strip() == "local"

    def test_hostname_from_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("FEDSTORE_HOSTNAME", "env.example")
        main(["owns", "https://env.example/users/a"])
        assert capsys.readouterr().out.strip() == "local"

    def test_new_id(self, capsys):
        main(["--hostname", "social.example", "new-id", "Create"])
        assert capsys.readouterr().out.startswith("https://social.example/activities/")

    def test_actor(self, capsys):
        code = main(["--hostname", "social.example", "actor", "alice", "--name", "Alice"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["id"] == "https://social.example/users/alice"
        assert data["name"] == "Alice"
        assert data["followers"] == "https://social.example/users/alice/followers"
        assert "publicKeyPem" in data["publicKey"]

    def test_page(self, capsys):
        main(["--hostname", "social.example", "page", "alice", "--limit", "5"])

        data = json.loads(capsys.readouterr().out)
        assert data["type"] == "OrderedCollectionPage"
        assert data["partOf"] == "https://social.example/users/alice/outbox"
        assert data["orderedItems"] == []
        assert data["totalItems"] == 0

    def test_config_file(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "fedstore.yaml"
            path.write_text("hostname: file.example\n")

            main(["--config", str(path), "owns", "https://file.example/x"])

        assert capsys.readouterr().out.strip() == "local"

    def test_error_exit_status(self, capsys):
        code = main(["--hostname", "social.example", "owns", "not-an-iri"])

        assert code == 1
        assert "Error" in capsys.readouterr().err
