"""HTTP plumbing shared by the remote bindings.

Every request goes through `send()`, which maps transport failures and HTTP
statuses onto the backend error classes.
"""

import requests

from backend import BackendError, ConflictError, NotFoundError, UnavailableError

DEFAULT_TIMEOUT = 30
USER_AGENT = "repofs/0.1"


def make_session(headers: dict[str, str] | None = None,
                 session: requests.Session | None = None) -> requests.Session:
    """Configure session, or a new one. The caller hands ownership over."""
    session = session or requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    if headers:
        session.headers.update(headers)
    return session


def _remote_message(response: requests.Response) -> str:
    """Best-effort error text from a response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return f"HTTP {response.status_code}: {body['message']}"
    return f"HTTP {response.status_code}"


def _rate_limited(response: requests.Response, message: str) -> bool:
    # Primary limits exhaust the quota; secondary limits send Retry-After.
    if response.headers.get("X-RateLimit-Remaining") == "0":
        return True
    return "Retry-After" in response.headers or "rate limit" in message.lower()


def check_response(response: requests.Response) -> requests.Response:
    """Raise the backend error matching a non-2xx response."""
    status = response.status_code
    if status < 300:
        return response

    message = _remote_message(response)
    if status == 404:
        raise NotFoundError(message)
    if status in (409, 422):
        raise ConflictError(message)
    if status == 429 or status >= 500:
        raise UnavailableError(message)
    if status == 403 and _rate_limited(response, message):
        raise UnavailableError(f"{message} (rate limit exceeded)")
    raise BackendError(message)


def send(session: requests.Session, method: str, url: str,
         timeout: float = DEFAULT_TIMEOUT, **kwargs) -> requests.Response:
    """Issue one request. No retries: mutations must not be blindly repeated."""
    try:
        response = session.request(method, url, timeout=timeout, **kwargs)
    except (requests.ConnectionError, requests.Timeout,
            requests.exceptions.ChunkedEncodingError,
            requests.exceptions.ContentDecodingError) as e:
        raise UnavailableError(f"{type(e).__name__}: {e}") from e
    except requests.RequestException as e:
        raise BackendError(f"{type(e).__name__}: {e}") from e
    return check_response(response)


def json_body(response: requests.Response):
    try:
        return response.json()
    except ValueError as e:
        raise BackendError(f"Malformed response from {response.url}: {e}") from e
