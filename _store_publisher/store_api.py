"""
Store API Client - Store Publisher

PURPOSE:
    Thin wrapper around the extension store's REST API. It shapes request
    paths and bodies, sends them through a requests.Session, and turns every
    failure into a StoreRequestError labelled with the calling operation.
    The stage modules build on top of it; none of them talk to requests
    directly.

CALLED BY:
    Every stage that touches the network (3, 4, 5, 6) and review_poller.py.

DEPENDS ON:
    - requests for HTTP
    - An account token (X-Shopware-Token header) or a session that is
      already authenticated. Obtaining the token is the caller's job.

CONFIGURATION:
    STORE_API_URL          Base URL of the store API (default https://api.shopware.com)
    STORE_REQUEST_TIMEOUT  Per-request timeout in seconds (default 30)
    STORE_PRODUCER_ID      Producer id, read by StoreAPI.from_environment()
    STORE_TOKEN            Account token, read by StoreAPI.from_environment()

DESIGN DECISIONS:
    - Every request is issued exactly once. There is no retry or backoff at
      this layer; a transient failure is a hard error for the caller.
    - Multipart bodies are built by the caller in memory and passed as raw
      bytes together with their content type. The session never infers the
      boundary.
"""

import logging
import os
from typing import Any, Optional

import requests

from _store_publisher.store_errors import StoreRequestError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------

API_URL = os.environ.get("STORE_API_URL", "https://api.shopware.com")
REQUEST_TIMEOUT = float(os.environ.get("STORE_REQUEST_TIMEOUT", "30"))


class StoreAPI:
    """
    Requests against the store API for one producer account.

    Producer-scoped endpoints (binaries) live under
    /producers/{producer_id}/plugins/{extension_id}; extension-scoped ones
    (icon, pictures, reviews) live under /plugins/{extension_id}.
    """

    def __init__(
        self,
        producer_id: int,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        base_url: str = API_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.producer_id = producer_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["X-Shopware-Token"] = token

    @classmethod
    def from_environment(cls, session: Optional[requests.Session] = None) -> "StoreAPI":
        """Build a client from STORE_PRODUCER_ID / STORE_TOKEN."""
        producer_id = os.environ.get("STORE_PRODUCER_ID", "")
        if not producer_id.isdigit():
            raise ValueError("STORE_PRODUCER_ID must be set to a numeric producer id")
        return cls(
            producer_id=int(producer_id),
            token=os.environ.get("STORE_TOKEN") or None,
            session=session,
        )

    def producer_path(self, extension_id: int) -> str:
        return f"/producers/{self.producer_id}/plugins/{extension_id}"

    def extension_path(self, extension_id: int) -> str:
        return f"/plugins/{extension_id}"

    # -----------------------------------------------------------------------
    # REQUESTS
    # -----------------------------------------------------------------------

    def request(
        self,
        label: str,
        method: str,
        path: str,
        json_body: Any = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None when empty).

        Args:
            label: Name of the calling operation, used as the error prefix.
            method: HTTP method.
            path: Path below the base URL, starting with "/".
            json_body: Payload to send as JSON.
            data: Raw body bytes (multipart uploads). Mutually exclusive
                  with json_body.
            content_type: Explicit Content-Type for raw bodies.
        """
        url = f"{self.base_url}{path}"
        headers = dict(self.headers)
        if content_type:
            headers["Content-Type"] = content_type

        logger.debug("%s %s (%s)", method, url, label)

        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreRequestError(label, str(e)) from e

        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            body = resp.text[:500] if resp.text else ""
            raise StoreRequestError(
                label, f"{e} {body}".strip(), status_code=resp.status_code
            ) from e

        if not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as e:
            raise StoreRequestError(
                label, f"invalid JSON response: {e}", status_code=resp.status_code
            ) from e

    def get(self, label: str, path: str) -> Any:
        return self.request(label, "GET", path)

    def post(self, label: str, path: str, json_body: Any = None) -> Any:
        return self.request(label, "POST", path, json_body=json_body)

    def put(self, label: str, path: str, json_body: Any = None) -> Any:
        return self.request(label, "PUT", path, json_body=json_body)

    def delete(self, label: str, path: str) -> Any:
        return self.request(label, "DELETE", path)

    def post_multipart(self, label: str, path: str, body: bytes, content_type: str) -> Any:
        """POST a prebuilt multipart body with its boundary content type."""
        return self.request(label, "POST", path, data=body, content_type=content_type)
