"""Binding to a flat upload-list REST store.

The store keeps a single collection of uploads:

    GET  /<resource>                -> {"<resource>": [upload, ...]}
    POST /<resource>                multipart form, field "file"
    GET  /<resource>/<id>/download  -> raw bytes

Each upload looks like:

    {"id": 7, "created_at": "2024-05-01T12:00:00Z",
     "file": {"blob": {"filename": "a.txt", "byte_size": 12}}}
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import quote

import requests

from backend import BackendError
from transport import DEFAULT_TIMEOUT, json_body, make_session, send


@dataclass
class Upload:
    id: str
    filename: str
    size: int
    created_at: datetime | None


def _parse_created(value: str | None) -> datetime | None:
    if not value:
        return None
    created = datetime.fromisoformat(value)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def _parse_upload(raw: dict) -> Upload:
    try:
        blob = raw["file"]["blob"]
        return Upload(
            id=str(raw["id"]),
            filename=blob["filename"],
            size=int(blob.get("byte_size") or 0),
            created_at=_parse_created(raw.get("created_at")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise BackendError(f"Malformed upload record: {e}") from e


class RestClient:
    """Holds the session and endpoint of one flat-store adapter."""

    def __init__(self, origin: str, resource: str = "predictions",
                 timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.origin = origin.rstrip("/")
        self.resource = resource
        self.timeout = timeout
        self._session = make_session(session=session)

    def _url(self, *parts: str) -> str:
        return "/".join([self.origin, self.resource, *(quote(p, safe="") for p in parts)])

    def index(self) -> list[Upload]:
        """Every upload, in the store's listing order."""
        body = json_body(send(self._session, "GET", self._url(), timeout=self.timeout))
        if isinstance(body, dict):
            body = body.get(self.resource)
        if not isinstance(body, list):
            raise BackendError(f"Unexpected listing shape from {self._url()}")
        return [_parse_upload(raw) for raw in body]

    def create(self, filename: str, content: bytes) -> Upload:
        response = send(self._session, "POST", self._url(), timeout=self.timeout,
                        files={"file": (filename, content)})
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "file" in body:
            return _parse_upload(body)
        return Upload(id="", filename=filename, size=len(content), created_at=None)

    def download(self, upload_id: str) -> bytes:
        response = send(self._session, "GET", self._url(upload_id, "download"),
                        timeout=self.timeout)
        return response.content
