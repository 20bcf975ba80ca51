"""Tests for LoadConfig validation and body encoding."""

from __future__ import annotations

import json

import pytest

from strain._internal.errors import ConfigError
from strain.engine.load_config import LoadConfig, encode_body


class TestLoadConfigValidation:
    def test_minimal_config(self):
        config = LoadConfig(url="http://test/ok")
        assert config.url == "http://test/ok"
        assert config.method == "GET"
        assert config.clients == 1
        assert config.headers == {}
        assert config.post_data is None

    def test_method_is_upper_cased(self):
        assert LoadConfig(url="http://test/ok", method="post").method == "POST"

    @pytest.mark.parametrize("method", ["FETCH", "", "G ET"])
    def test_unknown_method_rejected(self, method: str):
        with pytest.raises(ConfigError, match="Unsupported HTTP method"):
            LoadConfig(url="http://test/ok", method=method)

    @pytest.mark.parametrize("url", ["", "test/ok", "ftp://test/ok", "http://", "   "])
    def test_malformed_url_rejected(self, url: str):
        with pytest.raises(ConfigError, match="url"):
            LoadConfig(url=url)

    def test_https_accepted(self):
        assert LoadConfig(url="https://example.com/a?b=c").url == "https://example.com/a?b=c"

    @pytest.mark.parametrize("clients", [0, -3])
    def test_clients_below_one_rejected(self, clients: int):
        with pytest.raises(ConfigError, match="clients must be >= 1"):
            LoadConfig(url="http://test/ok", clients=clients)

    @pytest.mark.parametrize("clients", [True, 2.5, "4"])
    def test_non_integer_clients_rejected(self, clients: object):
        with pytest.raises(ConfigError, match="clients must be an integer"):
            LoadConfig(url="http://test/ok", clients=clients)  # type: ignore[arg-type]

    def test_non_string_header_value_rejected(self):
        with pytest.raises(ConfigError, match="header 'X-Count'"):
            LoadConfig(url="http://test/ok", headers={"X-Count": 3})  # type: ignore[dict-item]

    def test_non_string_header_name_rejected(self):
        with pytest.raises(ConfigError, match="must map a string to a string"):
            LoadConfig(url="http://test/ok", headers={1: "one"})  # type: ignore[dict-item]

    def test_headers_must_be_mapping(self):
        with pytest.raises(ConfigError, match="headers must be a mapping"):
            LoadConfig(url="http://test/ok", headers=[("a", "b")])  # type: ignore[arg-type]

    def test_unserializable_payload_rejected_at_construction(self):
        with pytest.raises(ConfigError, match="cannot be serialized"):
            LoadConfig(url="http://test/ok", method="POST", post_data={"when": object()})

    def test_frozen(self):
        config = LoadConfig(url="http://test/ok")
        with pytest.raises(AttributeError):
            config.clients = 4  # type: ignore[misc]


class TestFromMapping:
    def test_control_plane_shape(self):
        config = LoadConfig.from_mapping(
            {
                "url": "http://test/items",
                "method": "post",
                "clients": 5,
                "headers": {"Authorization": "Bearer t"},
                "postData": {"name": "widget"},
            }
        )
        assert config.method == "POST"
        assert config.clients == 5
        assert config.headers == {"Authorization": "Bearer t"}
        assert json.loads(config.body()) == {"name": "widget"}

    def test_missing_url(self):
        with pytest.raises(ConfigError, match="missing 'url'"):
            LoadConfig.from_mapping({"method": "GET"})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            LoadConfig.from_mapping(["http://test/ok"])  # type: ignore[arg-type]

    def test_null_headers_become_empty(self):
        config = LoadConfig.from_mapping({"url": "http://test/ok", "headers": None})
        assert config.headers == {}


class TestBody:
    def test_get_never_has_body(self):
        config = LoadConfig(url="http://test/ok", method="GET", post_data={"ignored": True})
        assert config.sends_body is False
        assert config.body() == b""

    def test_post_body_is_json(self):
        config = LoadConfig(url="http://test/ok", method="PUT", post_data=[1, 2, 3])
        assert config.sends_body is True
        assert config.body() == b"[1, 2, 3]"

    def test_encode_body_passes_bytes_and_str_through(self):
        assert encode_body(b"raw") == b"raw"
        assert encode_body("text") == b"text"

    def test_encode_body_none_is_empty(self):
        assert encode_body(None) == b""
