"""HTTP remote source for quotebook.

The remote speaks a generic posts API: ``GET`` returns a list of
``{id, title, body, userId}`` records and ``POST`` accepts
``{title, body, userId}`` and answers with the assigned ``id``.
Every transport problem surfaces as RemoteSourceError so a sync cycle can
abort cleanly.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from quotebook.protocols import RemoteSourceError
from quotebook.types import Item, RemoteAck
from quotebook.validation import validate_remote_url

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_URL = "https://jsonplaceholder.typicode.com/posts"
DEFAULT_TIMEOUT = 10.0
DEFAULT_SNAPSHOT_LIMIT = 20
DEFAULT_PUBLISH_USER_ID = 1


class HttpRemoteSource:
    """Remote snapshot provider over HTTP.

    Args:
        base_url: Collection endpoint used for both GET and POST.
        timeout: Request timeout in seconds.
        snapshot_limit: Keep only the first N records of a snapshot (0 keeps all).
        user_id: ``userId`` sent with published quotes.
        auth_token: Optional bearer token.
        client: Preconfigured httpx.Client (tests inject a MockTransport here).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_REMOTE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        snapshot_limit: int = DEFAULT_SNAPSHOT_LIMIT,
        user_id: int = DEFAULT_PUBLISH_USER_ID,
        auth_token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        if not validate_remote_url(base_url):
            raise ValueError(f"Rejected remote URL: {base_url!r}")
        self.base_url = base_url
        self.timeout = timeout
        self.snapshot_limit = snapshot_limit
        self.user_id = user_id
        self._client = client or httpx.Client(timeout=timeout, headers=self._headers(auth_token))
        self._owns_client = client is None

    @staticmethod
    def _headers(auth_token: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        return headers

    def _request(self, method: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, self.base_url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise RemoteSourceError(f"{method} {self.base_url} timed out") from e
        except httpx.HTTPStatusError as e:
            raise RemoteSourceError(
                f"{method} {self.base_url} returned status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteSourceError(f"{method} {self.base_url} failed: {e}") from e
        except ValueError as e:
            raise RemoteSourceError(f"{method} {self.base_url} returned malformed JSON") from e

    def fetch_snapshot(self) -> List[Dict[str, Any]]:
        """Fetch the remote records.

        Raises:
            RemoteSourceError: on transport failure, timeout, bad status or body.
        """
        data = self._request("GET")
        if not isinstance(data, list):
            raise RemoteSourceError(f"Expected a JSON array from {self.base_url}")

        records = [record for record in data if isinstance(record, dict)]
        if self.snapshot_limit:
            records = records[: self.snapshot_limit]
        logger.debug("Fetched %d remote record(s)", len(records))
        return records

    def publish(self, item: Item) -> RemoteAck:
        """Post a quote and return the id the remote assigned.

        Raises:
            RemoteSourceError: when the remote did not accept the quote.
        """
        created = self._request(
            "POST", json={"title": item.text, "body": item.category, "userId": self.user_id}
        )
        remote_id = created.get("id") if isinstance(created, dict) else None
        if remote_id is None:
            raise RemoteSourceError(f"Remote did not assign an id to {item.id}")
        return RemoteAck(remote_id=remote_id)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
