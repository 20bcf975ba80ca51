"""Validated description of one load run."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from yarl import URL

from strain._internal.errors import ConfigError
from strain._internal.types import Headers, PostData

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


def _validate_url(url: object) -> str:
    if not isinstance(url, str) or not url.strip():
        msg = f"url must be a non-empty string, got: {url!r}"
        raise ConfigError(msg)
    try:
        parsed = URL(url.strip())
    except (TypeError, ValueError) as exc:
        msg = f"url is malformed: {url!r} ({exc})"
        raise ConfigError(msg) from None
    if parsed.scheme not in ("http", "https") or not parsed.host:
        msg = f"url must be an absolute http(s) URL, got: {url!r}"
        raise ConfigError(msg)
    return str(parsed)


def _validate_method(method: object) -> str:
    if not isinstance(method, str):
        msg = f"method must be a string, got: {method!r}"
        raise ConfigError(msg)
    upper = method.strip().upper()
    if upper not in HTTP_METHODS:
        msg = f"Unsupported HTTP method {method!r}. Choose from: {', '.join(sorted(HTTP_METHODS))}"
        raise ConfigError(msg)
    return upper


def _validate_clients(clients: object) -> int:
    if isinstance(clients, bool) or not isinstance(clients, int):
        msg = f"clients must be an integer, got: {clients!r}"
        raise ConfigError(msg)
    if clients < 1:
        msg = f"clients must be >= 1, got: {clients}"
        raise ConfigError(msg)
    return clients


def _validate_headers(headers: object) -> Headers:
    if headers is None:
        return {}
    if not isinstance(headers, Mapping):
        msg = f"headers must be a mapping of strings, got: {type(headers).__name__}"
        raise ConfigError(msg)
    validated: Headers = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not isinstance(value, str):
            msg = f"header {key!r} must map a string to a string, got value {value!r}"
            raise ConfigError(msg)
        validated[key] = value
    return validated


def encode_body(post_data: PostData) -> bytes:
    """Serialize a payload to request body bytes.

    ``None`` is an empty body, ``bytes`` and ``str`` are sent verbatim,
    anything else is encoded as JSON.

    Raises:
        ConfigError: If the payload is not JSON-serializable.
    """
    if post_data is None:
        return b""
    if isinstance(post_data, bytes):
        return post_data
    if isinstance(post_data, str):
        return post_data.encode("utf-8")
    try:
        return json.dumps(post_data).encode("utf-8")
    except (TypeError, ValueError) as exc:
        msg = f"post_data cannot be serialized to JSON: {exc}"
        raise ConfigError(msg) from None


@dataclass(frozen=True)
class LoadConfig:
    """Target, verb, concurrency, headers and payload of a run.

    Construction validates every field, so an instance that exists is
    always runnable.

    Attributes:
        url: Absolute http(s) URL of the target.
        method: Upper-cased HTTP verb.
        clients: Number of concurrent workers, at least 1.
        headers: Header names mapped to values, sent with every request.
        post_data: Payload for non-GET requests.
    """

    url: str
    method: str = "GET"
    clients: int = 1
    headers: Headers = field(default_factory=dict)
    post_data: PostData = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", _validate_url(self.url))
        object.__setattr__(self, "method", _validate_method(self.method))
        object.__setattr__(self, "clients", _validate_clients(self.clients))
        object.__setattr__(self, "headers", _validate_headers(self.headers))
        # Fail on unserializable payloads now rather than when the run starts
        self.body()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LoadConfig:
        """Build a config from a loosely-typed mapping, e.g. a decoded JSON body.

        Accepts ``postData`` as an alias of ``post_data``.

        Raises:
            ConfigError: If a field is missing or invalid.
        """
        if not isinstance(raw, Mapping):
            msg = f"load config must be a mapping, got: {type(raw).__name__}"
            raise ConfigError(msg)
        if "url" not in raw:
            msg = "load config is missing 'url'"
            raise ConfigError(msg)
        return cls(
            url=raw["url"],
            method=raw.get("method", "GET"),
            clients=raw.get("clients", 1),
            headers=raw.get("headers"),  # type: ignore[arg-type]
            post_data=raw.get("post_data", raw.get("postData")),
        )

    @property
    def sends_body(self) -> bool:
        """GET requests never carry a body."""
        return self.method != "GET"

    def body(self) -> bytes:
        """Serialized payload, or ``b""`` for GET."""
        if not self.sends_body:
            return b""
        return encode_body(self.post_data)
