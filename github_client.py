"""Binding to a Git hosting contents API (GitHub REST v3 shape).

Objects are addressed by repository path. Reads return either one object
(a dict) or a directory listing (a list). Updates and deletes must quote the
object's current blob sha.
"""

import base64
from urllib.parse import quote

import requests

from backend import IS_A_DIRECTORY, BackendError, NotFoundError, parent_of
from transport import DEFAULT_TIMEOUT, json_body, make_session, send

DEFAULT_API_URL = "https://api.github.com"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


class GithubClient:
    """Holds the session, credentials and repository of one adapter.

    An injected session becomes the client's own: its headers are rewritten.
    """

    def __init__(self, token: str | None, repo: str, api_url: str = DEFAULT_API_URL,
                 branch: str | None = None, timeout: float = DEFAULT_TIMEOUT,
                 session: requests.Session | None = None):
        if repo.count("/") != 1:
            raise ValueError(f"Repository must look like 'owner/name', got {repo!r}")
        self.repo = repo
        self.branch = branch
        self.timeout = timeout
        self._base = f"{api_url.rstrip('/')}/repos/{repo}/contents"
        self._session = make_session(session=session)
        self._session.headers["Accept"] = "application/vnd.github+json"
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        else:
            self._session.headers.pop("Authorization", None)

    def _url(self, path: str) -> str:
        return f"{self._base}/{quote(path, safe='/')}"

    def _ref(self) -> dict:
        return {"ref": self.branch} if self.branch else {}

    def contents(self, path: str):
        """Metadata lookup: a dict for a file, a list of entries for a directory."""
        response = send(self._session, "GET", self._url(path),
                        timeout=self.timeout, params=self._ref())
        return json_body(response)

    def get(self, path: str) -> bytes:
        """Fetch and decode the full content of a file."""
        info = self.contents(path)
        if isinstance(info, list):
            raise BackendError(IS_A_DIRECTORY)
        if info.get("type") not in (None, "file"):
            raise BackendError(f"Not a regular file: {path} ({info.get('type')})")
        if info.get("encoding") == "base64":
            return base64.b64decode(info.get("content") or "")
        # Too large to inline: ask for the raw bytes instead.
        response = send(self._session, "GET", self._url(path), timeout=self.timeout,
                        params=self._ref(), headers={"Accept": RAW_MEDIA_TYPE})
        return response.content

    def sha(self, path: str) -> str:
        """Current blob sha of a file, resolved from its parent listing."""
        entry = self.entry(path)
        if entry is None:
            raise NotFoundError(path)
        if entry.get("type") == "dir":
            raise BackendError(IS_A_DIRECTORY)
        return entry["sha"]

    def entry(self, path: str) -> dict | None:
        """The parent listing's entry for path, or None if absent."""
        try:
            siblings = self.contents(parent_of(path))
        except NotFoundError:
            return None
        if not isinstance(siblings, list):
            return None
        for entry in siblings:
            if entry.get("path") == path:
                return entry
        return None

    def _commit(self, message: str, **fields) -> dict:
        body = {"message": message, **fields}
        if self.branch:
            body["branch"] = self.branch
        return body

    def create(self, path: str, content: bytes) -> dict:
        encoded = base64.b64encode(content).decode("ascii")
        response = send(self._session, "PUT", self._url(path), timeout=self.timeout,
                        json=self._commit(f"Create {path}", content=encoded))
        return json_body(response)

    def update(self, path: str, content: bytes, sha: str) -> dict:
        encoded = base64.b64encode(content).decode("ascii")
        response = send(self._session, "PUT", self._url(path), timeout=self.timeout,
                        json=self._commit(f"Update {path}", content=encoded, sha=sha))
        return json_body(response)

    def delete(self, path: str, sha: str) -> None:
        send(self._session, "DELETE", self._url(path), timeout=self.timeout,
             json=self._commit(f"Delete {path}", sha=sha))
