"""Unit tests for auth/service.py -- login matching over the users collection.

The users collection is a FakeCollection (tests/fakes.py) or a MagicMock
when a specific payload or failure is needed. No HTTP.
"""

from unittest.mock import MagicMock

import pytest

from auth.service import AuthService, InvalidCredentials, ServiceUnavailable
from auth.session import SessionStore
from core.models import User
from core.resources import RequestError
from fakes import FakeCollection


def _service(records):
    return AuthService(FakeCollection("users", records))


class TestLogin:
    def test_login_by_username(self, users):
        user = AuthService(users).login("ana", "secret1")
        assert user.id == "1"
        assert user.username == "ana"

    def test_login_by_email(self, users):
        user = AuthService(users).login("ana@condestyle.test", "secret1")
        assert user.id == "1"

    def test_returns_full_record_with_extra_fields(self, users):
        user = AuthService(users).login("ana", "secret1")
        assert user.extra == {"avatar": "a.png"}
        assert user.email == "ana@condestyle.test"

    def test_wrong_password(self, users):
        with pytest.raises(InvalidCredentials):
            AuthService(users).login("ana", "secret2")

    def test_unknown_identifier(self, users):
        with pytest.raises(InvalidCredentials):
            AuthService(users).login("missing", "x")

    def test_empty_collection(self):
        with pytest.raises(InvalidCredentials):
            _service([]).login("ana", "secret1")

    def test_identifier_is_case_sensitive(self, users):
        with pytest.raises(InvalidCredentials):
            AuthService(users).login("ANA", "secret1")

    def test_record_without_password_never_matches(self):
        with pytest.raises(InvalidCredentials):
            _service([{"username": "ghost"}]).login("ghost", "")

    def test_non_dict_records_are_skipped(self):
        client = MagicMock()
        client.get_all.return_value = ["junk", None, {"id": "9", "username": "ok", "password": "pw"}]
        assert AuthService(client).login("ok", "pw").id == "9"

    def test_scan_order_decides_between_username_and_email(self):
        """First record in collection order wins, whichever field matched."""
        records = [
            {"username": "a", "password": "p1"},
            {"username": "b", "email": "a", "password": "p2"},
        ]
        assert _service(records).login("a", "p1").username == "a"
        assert _service(records).login("a", "p2").username == "b"

    def test_email_match_earlier_in_order_wins(self):
        records = [
            {"username": "b", "email": "a", "password": "same"},
            {"username": "a", "password": "same"},
        ]
        assert _service(records).login("a", "same").username == "b"

    def test_fetches_full_collection_each_attempt(self, users):
        auth = AuthService(users)
        auth.login("ana", "secret1")
        with pytest.raises(InvalidCredentials):
            auth.login("ana", "nope")
        assert users.calls == ["get_all", "get_all"]


class TestLoginFailures:
    def test_transport_failure_is_service_unavailable(self, users):
        users.fail = True
        with pytest.raises(ServiceUnavailable) as exc_info:
            AuthService(users).login("ana", "secret1")
        assert isinstance(exc_info.value.__cause__, RequestError)

    def test_http_error_is_service_unavailable(self):
        client = MagicMock()
        client.get_all.side_effect = RequestError(500, "Internal Server Error")
        with pytest.raises(ServiceUnavailable, match="500"):
            AuthService(client).login("ana", "secret1")

    def test_non_list_payload_is_service_unavailable(self):
        client = MagicMock()
        client.get_all.return_value = {"message": "rate limited"}
        with pytest.raises(ServiceUnavailable):
            AuthService(client).login("ana", "secret1")

    def test_failure_is_logged(self, users, caplog):
        with caplog.at_level("WARNING", logger="condestyle.auth"):
            with pytest.raises(InvalidCredentials):
                AuthService(users).login("missing", "x")
        assert "invalid credentials" in caplog.text


class TestSessionHelpers:
    def test_login_into_writes_session(self, users, storage):
        session = SessionStore(storage, "p1")
        user = AuthService(users).login_into(session, "luis", "secret2")
        assert session.get() == user

    def test_failed_login_leaves_session_untouched(self, users, storage):
        session = SessionStore(storage, "p1")
        previous = User(id="2", username="luis", password="secret2")
        session.set(previous)
        with pytest.raises(InvalidCredentials):
            AuthService(users).login_into(session, "ana", "wrong")
        assert session.get() == previous

    def test_logout_clears_session(self, users, storage):
        session = SessionStore(storage, "p1")
        AuthService(users).login_into(session, "ana", "secret1")
        AuthService.logout(session)
        assert AuthService.current_user(session) is None
