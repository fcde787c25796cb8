"""Shared fakes and payload builders for the store publisher tests."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests
from PIL import Image

BASE_URL = "https://store.test"
PRODUCER_ID = 42
EXTENSION_ID = 7


@dataclass
class RecordedCall:
    method: str
    path: str
    headers: Dict[str, str]
    json: Any
    data: Optional[bytes]
    timeout: Any


class FakeSession:
    """Stands in for requests.Session; answers from per-route queues.

    The last queued answer for a route repeats once the queue is drained.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[RecordedCall] = []

    def add(self, method: str, path: str, payload: Any = None, status: int = 200) -> None:
        self.routes.setdefault((method, path), []).append((status, payload))

    def add_error(self, method: str, path: str, error: Exception) -> None:
        self.routes.setdefault((method, path), []).append(error)

    def request(self, method, url, headers=None, json=None, data=None, timeout=None):
        path = urlparse(url).path
        self.calls.append(
            RecordedCall(method, path, dict(headers or {}), json, data, timeout)
        )
        queue = self.routes.get((method, path))
        if not queue:
            raise AssertionError(f"Unexpected request {method} {url}")
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        status, payload = answer
        return make_response(status, payload, url)

    def paths(self) -> List[Tuple[str, str]]:
        return [(call.method, call.path) for call in self.calls]


def make_response(status: int, payload: Any, url: str) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.reason = "OK" if status < 400 else "Server Error"
    resp.encoding = "utf-8"
    if payload is None:
        resp._content = b""
    elif isinstance(payload, bytes):
        resp._content = payload
    else:
        resp._content = json.dumps(payload).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    return resp


def write_image(path: Path, size: Tuple[int, int], fmt: str = "PNG") -> Path:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    color = (200, 40, 40) if mode == "RGB" else (200, 40, 40, 255)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


def review_payload(type_id: int, type_name: str = "", sub_checks=None) -> dict:
    return {
        "id": 1,
        "binaryId": 99,
        "type": {"id": type_id, "name": type_name, "description": ""},
        "message": "",
        "creationDate": "2026-10-01 10:00:00",
        "subCheckResults": sub_checks or [],
    }
