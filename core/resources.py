"""
resources.py -- Generic CRUD client for one remote collection resource.

The hosted mock API exposes every collection the same way:

  GET    {base}          -- list all records
  GET    {base}/{id}     -- one record
  POST   {base}          -- create, body is the record
  PUT    {base}/{id}     -- replace, body is the record
  DELETE {base}/{id}     -- delete, returns the deleted record

No auth headers, tokens or pagination parameters are sent. Each call is a
single round trip: no caching, no retries, no local validation. Failures are
logged and re-raised as RequestError so callers decide what to show.
"""

import logging
from typing import Any, Optional, Union

import requests

from core.config import Settings, get_settings

logger = logging.getLogger("condestyle.resources")

RecordId = Union[str, int]

# Module-level session shared across all clients for connection pooling.
# max_redirects=3 replaces the requests default of 30 -- the mock API never
# redirects more than once.
_session = requests.Session()
_session.max_redirects = 3


class RequestError(Exception):
    """A transport or HTTP-level failure talking to a collection.

    status is the HTTP status code when the server answered, None when the
    request never got a response (DNS, connection refused, timeout).
    """

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class NotFoundError(RequestError):
    """The remote API answered 404 for a record id."""


class ResourceClient:
    """CRUD forwarder for a single collection, parameterized only by base URL.

    Usage:
        products = ResourceClient("https://.../api/v1/products")
        items = products.get_all()
        created = products.create({"name": "Hat", "price": 20})
        products.delete(created["id"])
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or _session

    def __repr__(self) -> str:
        return f"ResourceClient({self.base_url!r})"

    @property
    def name(self) -> str:
        """Collection name, i.e. the last path segment of the base URL."""
        return self.base_url.rsplit("/", 1)[-1]

    def _url(self, record_id: Optional[RecordId] = None) -> str:
        if record_id is None:
            return self.base_url
        return f"{self.base_url}/{record_id}"

    def _request(self, operation: str, method: str, url: str, body: Optional[dict] = None) -> Any:
        """Send one request and return the decoded JSON body.

        Logs and raises RequestError (NotFoundError on 404) on any failure.
        """
        try:
            resp = self._session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Error in %s (%s %s): %s", operation, method, url, e)
            raise RequestError(None, str(e)) from e

        if resp.status_code >= 400:
            message = resp.reason or f"HTTP {resp.status_code}"
            logger.error("Error in %s (%s %s): %d %s", operation, method, url, resp.status_code, message)
            error_cls = NotFoundError if resp.status_code == 404 else RequestError
            raise error_cls(resp.status_code, message)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("Error in %s (%s %s): response is not JSON", operation, method, url)
            raise RequestError(resp.status_code, "Response body is not valid JSON") from e

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def get_all(self) -> list[dict[str, Any]]:
        """Return every record in the collection, in the order the API returns them."""
        return self._request("get_all", "GET", self._url())

    def get_by_id(self, record_id: RecordId) -> dict[str, Any]:
        """Return one record. Raises NotFoundError if the id does not exist."""
        return self._request("get_by_id", "GET", self._url(record_id))

    def create(self, record: dict[str, Any]) -> dict[str, Any]:
        """Create a record and return it with its server-assigned id."""
        return self._request("create", "POST", self._url(), body=record)

    def update(self, record_id: RecordId, record: dict[str, Any]) -> dict[str, Any]:
        """Replace a record and return the updated version."""
        return self._request("update", "PUT", self._url(record_id), body=record)

    def delete(self, record_id: RecordId) -> dict[str, Any]:
        """Delete a record and return what the API reports as deleted."""
        return self._request("delete", "DELETE", self._url(record_id))


def products_client(settings: Optional[Settings] = None) -> ResourceClient:
    """Client for the products collection."""
    settings = settings or get_settings()
    return ResourceClient(settings.products_url, timeout=settings.request_timeout)


def users_client(settings: Optional[Settings] = None) -> ResourceClient:
    """Client for the users collection."""
    settings = settings or get_settings()
    return ResourceClient(settings.users_url, timeout=settings.request_timeout)
