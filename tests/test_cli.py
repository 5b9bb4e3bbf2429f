"""Tests for main.py -- the command-line client.

Collections are FakeCollections patched into main's factory functions; the
session lives in a SQLite file under tmp_path so each invocation reopens it,
as separate CLI runs would.
"""

import json
from unittest.mock import patch

import pytest

import main
from fakes import SEED_PRODUCTS, SEED_USERS, FakeCollection


@pytest.fixture
def cli(tmp_path):
    """Return (run, users, products). run(*argv) returns the exit code."""
    users = FakeCollection("users", SEED_USERS)
    products = FakeCollection("products", SEED_PRODUCTS)
    db = f"sqlite:///{tmp_path / 'cli.db'}"

    def run(*argv):
        with (
            patch("main.users_client", return_value=users),
            patch("main.products_client", return_value=products),
        ):
            return main.main(["--db", db, *argv])

    return run, users, products


def test_whoami_without_session(cli, capsys):
    run, _, _ = cli
    assert run("whoami") == 1
    assert "Not logged in." in capsys.readouterr().out


def test_login_persists_between_invocations(cli, capsys):
    run, _, _ = cli
    assert run("login", "ana", "--password", "secret1") == 0
    capsys.readouterr()
    assert run("whoami") == 0
    data = json.loads(capsys.readouterr().out)
    assert data["username"] == "ana"
    assert "password" not in data


def test_login_invalid(cli, capsys):
    run, _, _ = cli
    assert run("login", "ana", "--password", "nope") == 1
    assert "Invalid username or password." in capsys.readouterr().err


def test_login_prompts_for_password(cli):
    run, _, _ = cli
    with patch("main.getpass.getpass", return_value="secret2"):
        assert run("login", "luis") == 0


def test_logout(cli):
    run, _, _ = cli
    run("login", "ana", "--password", "secret1")
    assert run("logout") == 0
    assert run("whoami") == 1


def test_navigate_guarded_route(cli, capsys):
    run, _, _ = cli
    assert run("navigate", "/users") == 1
    assert "/users -> redirect /login" in capsys.readouterr().out
    run("login", "ana", "--password", "secret1")
    capsys.readouterr()
    assert run("navigate", "/users") == 0
    assert "/users -> users" in capsys.readouterr().out


def test_navigate_public_and_unknown(cli):
    run, _, _ = cli
    assert run("navigate", "/productos") == 0
    assert run("navigate", "/nowhere") == 1


def test_products_list_and_create(cli, capsys):
    run, _, _ = cli
    assert run("products", "create", "--name", "Gorra", "--price", "12.5") == 0
    created = json.loads(capsys.readouterr().out)
    assert created["id"] == "3"
    assert run("products", "list") == 0
    assert len(json.loads(capsys.readouterr().out)) == 3


def test_products_get_missing(cli, capsys):
    run, _, _ = cli
    assert run("products", "get", "99") == 1
    assert "Record not found." in capsys.readouterr().err


def test_products_upstream_failure(cli, capsys):
    run, _, products = cli
    products.fail = True
    assert run("products", "list") == 1
    assert "Request failed" in capsys.readouterr().err


def test_users_requires_session(cli):
    run, users, _ = cli
    assert run("users", "list") == 1
    assert users.calls == []


def test_users_list_with_session_hides_passwords(cli, capsys):
    run, _, _ = cli
    run("login", "ana", "--password", "secret1")
    capsys.readouterr()
    assert run("users", "list") == 0
    data = json.loads(capsys.readouterr().out)
    assert [u["username"] for u in data] == ["ana", "luis"]
    assert all("password" not in u for u in data)
