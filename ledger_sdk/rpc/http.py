from __future__ import annotations

"""
HTTP+CBOR transport (sync).

- Uses httpx for the connection pool; bodies are canonical CBOR (cbor2).
- Stateless per request: one `RpcTransport` can be shared by any number of
  threads building and polling different orders.
- Performs *no* retries; failures propagate immediately. A POST is sent at
  most once per call.

Outcomes of every call are exactly one of:
  - the decoded value (after applying the optional `shape`)
  - `NotFoundError`   (HTTP 404)
  - `ProtocolError`   (any other status, undecodable body, network failure)

Example:
    from ledger_sdk.rpc.http import RpcTransport
    rpc = RpcTransport("http://localhost:26866")
    round_number = rpc.get("rounds/latest", shape=int)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import httpx

from ..errors import EncodingError, NotFoundError, ProtocolError
from ..utils.cbor import expect_array, loads
from ..version import user_agent

log = logging.getLogger(__name__)

T = TypeVar("T")

# A shape turns the decoded CBOR value into the caller's type, raising
# EncodingError/TypeError/ValueError when the value does not fit.
Shape = Callable[[Any], T]

API_PATH_PREFIX = "/api/v1"
DEFAULT_REQUEST_TIMEOUT = 10.0
CBOR_CONTENT_TYPE = "application/cbor"


def _join(*parts: str) -> str:
    return "/" + "/".join(p.strip("/") for p in parts if p and p.strip("/"))


@dataclass
class RpcTransport:
    """
    Synchronous request/response layer against the node's REST API.

    An injected `client` is used as is: it must already carry the base URL,
    headers and timeout, so passing `headers` or `timeout` alongside it is
    rejected.
    """

    base_url: str
    timeout: Optional[float] = None
    headers: Optional[Mapping[str, str]] = None
    prefix: str = API_PATH_PREFIX
    client: Optional[httpx.Client] = None
    _client: httpx.Client = field(init=False, repr=False)
    _owns_client: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        if not self.base_url.lower().startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://, got {self.base_url!r}")
        merged_headers: Dict[str, str] = {
            "Accept": CBOR_CONTENT_TYPE,
            "User-Agent": user_agent(),
        }
        if self.headers:
            merged_headers.update(dict(self.headers))

        if self.client is not None:
            if self.headers is not None or self.timeout is not None:
                raise ValueError("headers and timeout cannot be combined with an injected client")
            self._client = self.client
        else:
            self._client = httpx.Client(
                base_url=self.base_url.rstrip("/"),
                timeout=DEFAULT_REQUEST_TIMEOUT if self.timeout is None else self.timeout,
                headers=merged_headers,
            )
            self._owns_client = True

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # --- public API ------------------------------------------------------

    def url_for(self, path: str) -> str:
        return _join(self.prefix, path)

    def get(self, path: str, shape: Optional[Shape] = None, *, allow_empty: bool = False) -> Any:
        """
        GET `path` (relative to the API prefix) and decode the CBOR body.

        With `shape=None` the decoded value is returned as is.
        """
        url = self.url_for(path)
        try:
            resp = self._client.get(url)
        except httpx.HTTPError as e:
            raise ProtocolError(f"request to rpc node failed: {e}", url=url) from e
        return self._decode_response(resp, 200, shape, allow_empty=allow_empty, want_body=True)

    def post(
        self,
        path: str,
        body: bytes,
        *,
        expected_status: int = 200,
        shape: Optional[Shape] = None,
    ) -> Any:
        """
        POST a CBOR `body`. Returns None unless a `shape` is given, in which
        case the response body is decoded with it.
        """
        url = self.url_for(path)
        try:
            resp = self._client.post(url, content=bytes(body), headers={"Content-Type": CBOR_CONTENT_TYPE})
        except httpx.HTTPError as e:
            raise ProtocolError(f"send node request failed: {e}", url=url) from e
        return self._decode_response(resp, expected_status, shape, allow_empty=True, want_body=shape is not None)

    # --- internals -------------------------------------------------------

    def _decode_response(
        self,
        resp: httpx.Response,
        success_status: int,
        shape: Optional[Shape],
        *,
        allow_empty: bool,
        want_body: bool,
    ) -> Any:
        url = str(resp.request.url) if resp.request is not None else None
        status = resp.status_code
        if status == success_status:
            if not want_body:
                return None
            content = resp.content
            if not content:
                if allow_empty:
                    return None
                raise ProtocolError("empty response body", status=status, reason=resp.reason_phrase, url=url)
            try:
                value = loads(content)
                return shape(value) if shape is not None else value
            except (EncodingError, TypeError, ValueError) as e:
                raise ProtocolError(
                    f"failed to decode response body: {e}", status=status, reason=resp.reason_phrase, url=url
                ) from e

        if status == 404:
            raise NotFoundError(url=url)

        message = _error_message(resp.content)
        log.debug("rpc %s -> %s %s", url, status, message)
        if message is None:
            # Body not understood: surface the status line only.
            raise ProtocolError(f"{status} {resp.reason_phrase}", status=status, reason=resp.reason_phrase, url=url)
        raise ProtocolError(message, status=status, reason=resp.reason_phrase, url=url)


def _error_message(content: bytes) -> Optional[str]:
    """Extract the message from an error body shaped as CBOR ``[errorString]``."""
    if not content:
        return None
    try:
        arr = expect_array(loads(content), 1, "ErrorInfo")
    except EncodingError:
        return None
    return arr[0] if isinstance(arr[0], str) else None


__all__ = ["RpcTransport", "API_PATH_PREFIX", "Shape"]
