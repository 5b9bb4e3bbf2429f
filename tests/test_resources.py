"""Unit tests for core/resources.py -- ResourceClient over a mocked requests.Session.

All HTTP is mocked. Tests focus on:
- Verb and URL for each of the five operations
- JSON body on create/update, none on reads/deletes
- Failure mapping: transport error, HTTP error, 404, undecodable body
- Factories reading collection URLs from Settings
"""

from unittest.mock import MagicMock

import pytest
import requests

from core.config import Settings
from core.resources import NotFoundError, RequestError, ResourceClient, products_client, users_client

_BASE = "https://mock.test/api/v1/products"


def _response(status_code=200, payload=None, reason="OK", json_error=False):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = reason
    if json_error:
        resp.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        resp.json.return_value = payload
    return resp


def _client(response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.request.side_effect = side_effect
    else:
        session.request.return_value = response
    return ResourceClient(_BASE, session=session, timeout=5), session


# ---------------------------------------------------------------------------
# TestOperations
# ---------------------------------------------------------------------------


class TestOperations:
    def test_get_all(self):
        client, session = _client(_response(payload=[{"id": "1"}]))
        assert client.get_all() == [{"id": "1"}]
        session.request.assert_called_once_with("GET", _BASE, json=None, timeout=5)

    def test_get_by_id(self):
        client, session = _client(_response(payload={"id": "7"}))
        assert client.get_by_id(7) == {"id": "7"}
        session.request.assert_called_once_with("GET", f"{_BASE}/7", json=None, timeout=5)

    def test_create_sends_record_as_json(self):
        record = {"name": "Camisa", "price": 20}
        client, session = _client(_response(201, {**record, "id": "3"}))
        assert client.create(record) == {"name": "Camisa", "price": 20, "id": "3"}
        session.request.assert_called_once_with("POST", _BASE, json=record, timeout=5)

    def test_update(self):
        record = {"name": "Camisa", "price": 18}
        client, session = _client(_response(payload={**record, "id": "3"}))
        assert client.update("3", record)["price"] == 18
        session.request.assert_called_once_with("PUT", f"{_BASE}/3", json=record, timeout=5)

    def test_delete(self):
        client, session = _client(_response(payload={"id": "3"}))
        assert client.delete("3") == {"id": "3"}
        session.request.assert_called_once_with("DELETE", f"{_BASE}/3", json=None, timeout=5)

    def test_trailing_slash_in_base_url_is_dropped(self):
        session = MagicMock()
        session.request.return_value = _response(payload=[])
        ResourceClient(_BASE + "/", session=session).get_all()
        assert session.request.call_args.args[1] == _BASE

    def test_name_is_last_path_segment(self):
        assert ResourceClient(_BASE).name == "products"

    def test_one_request_per_call(self):
        client, session = _client(_response(payload=[]))
        client.get_all()
        client.get_all()
        assert session.request.call_count == 2


# ---------------------------------------------------------------------------
# TestFailures
# ---------------------------------------------------------------------------


class TestFailures:
    def test_transport_error(self):
        client, _ = _client(side_effect=requests.ConnectionError("Connection refused"))
        with pytest.raises(RequestError) as exc_info:
            client.get_all()
        assert exc_info.value.status is None
        assert "Connection refused" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout(self):
        client, _ = _client(side_effect=requests.Timeout("read timed out"))
        with pytest.raises(RequestError):
            client.create({"name": "x"})

    def test_http_error_carries_status(self):
        client, _ = _client(_response(500, reason="Internal Server Error"))
        with pytest.raises(RequestError) as exc_info:
            client.get_all()
        assert exc_info.value.status == 500
        assert str(exc_info.value) == "500: Internal Server Error"
        assert not isinstance(exc_info.value, NotFoundError)

    @pytest.mark.parametrize("operation,args", [("get_by_id", ("99",)), ("update", ("99", {})), ("delete", ("99",))])
    def test_404_is_not_found(self, operation, args):
        client, _ = _client(_response(404, payload="Not found", reason="Not Found"))
        with pytest.raises(NotFoundError) as exc_info:
            getattr(client, operation)(*args)
        assert exc_info.value.status == 404

    def test_undecodable_body(self):
        client, _ = _client(_response(200, json_error=True))
        with pytest.raises(RequestError, match="not valid JSON"):
            client.get_all()

    def test_failure_is_logged(self, caplog):
        client, _ = _client(_response(503, reason="Service Unavailable"))
        with caplog.at_level("ERROR", logger="condestyle.resources"):
            with pytest.raises(RequestError):
                client.delete("1")
        assert "Error in delete" in caplog.text


# ---------------------------------------------------------------------------
# TestFactories
# ---------------------------------------------------------------------------


class TestFactories:
    def test_clients_use_configured_urls(self):
        settings = Settings(
            products_url="http://localhost:3000/products/",
            users_url="http://localhost:3000/users",
            request_timeout=2.5,
        )
        products = products_client(settings)
        users = users_client(settings)
        assert products.base_url == "http://localhost:3000/products"
        assert users.base_url == "http://localhost:3000/users"
        assert products.timeout == 2.5
