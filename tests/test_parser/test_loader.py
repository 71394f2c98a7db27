"""Tests for speclens.parser.loader -- sources, syntax hints and version checks."""

from __future__ import annotations

import io
import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from speclens.exceptions import SpecParseError
from speclens.models import SourceType
from speclens.parser.loader import (
    _fetch,
    _read_file,
    detect_source_type,
    load_spec,
    parse_document,
    validate_spec_version,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

MINIMAL_YAML = 'openapi: "3.0.0"\ninfo:\n  title: From YAML\n  version: "1.0"\n'


def _response(status: int = 200, url: str = "https://example.com/spec", **kwargs) -> httpx.Response:
    return httpx.Response(status_code=status, request=httpx.Request("GET", url), **kwargs)


class TestLoadSpec:
    def test_json_fixture(self) -> None:
        spec = load_spec(str(FIXTURES_DIR / "petstore.json"))
        assert spec["openapi"] == "3.0.3"
        assert spec["info"]["title"] == "Swagger Petstore"

    def test_swagger2_yaml_fixture(self) -> None:
        spec = load_spec(str(FIXTURES_DIR / "petstore_swagger2.yaml"))
        assert spec["swagger"] == "2.0"
        assert "Pet" in spec["definitions"]

    def test_stdin(self) -> None:
        with patch("speclens.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO(MINIMAL_YAML)
            assert load_spec("-")["info"]["title"] == "From YAML"

    def test_blank_stdin(self) -> None:
        with patch("speclens.parser.loader.sys") as mock_sys:
            mock_sys.stdin = io.StringIO("  \n\t")
            with pytest.raises(SpecParseError, match="No input"):
                load_spec("-")

    def test_url_uses_timeout_and_redirects(self) -> None:
        body = {"openapi": "3.1.0", "info": {"title": "Remote", "version": "2"}}
        with patch("speclens.parser.loader.httpx.get", return_value=_response(json=body)) as get:
            assert load_spec("https://example.com/spec")["info"]["title"] == "Remote"
        get.assert_called_once_with("https://example.com/spec", timeout=30.0, follow_redirects=True)


class TestDetectSourceType:
    @pytest.mark.parametrize(
        "source, expected",
        [
            ("https://example.com/openapi.json", SourceType.URL),
            ("http://localhost:8080/spec.yaml", SourceType.URL),
            ("./openapi.yaml", SourceType.FILE),
            ("/abs/path/spec.json", SourceType.FILE),
            ("-", SourceType.STDIN),
        ],
    )
    def test_classifies(self, source: str, expected: SourceType) -> None:
        assert detect_source_type(source) is expected


class TestReadFile:
    @pytest.mark.parametrize(
        "name, hint",
        [("a.json", "json"), ("a.YAML", "yaml"), ("a.yml", "yaml"), ("a.txt", None), ("spec", None)],
    )
    def test_extension_becomes_hint(self, tmp_path: Path, name: str, hint) -> None:
        target = tmp_path / name
        target.write_text("x: 1", encoding="utf-8")
        assert _read_file(str(target)) == ("x: 1", hint)

    def test_missing(self) -> None:
        with pytest.raises(SpecParseError, match="Spec file not found"):
            _read_file("/nonexistent/spec.json")

    def test_empty(self, tmp_path: Path) -> None:
        target = tmp_path / "empty.yaml"
        target.write_text("\n\n", encoding="utf-8")
        with pytest.raises(SpecParseError, match="empty"):
            _read_file(str(target))

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(SpecParseError, match="not found"):
            _read_file(str(tmp_path))


class TestFetch:
    @pytest.mark.parametrize(
        "content_type, hint",
        [
            ("application/json; charset=utf-8", "json"),
            ("application/x-yaml", "yaml"),
            ("text/yml", "yaml"),
            ("text/plain", None),
        ],
    )
    def test_content_type_becomes_hint(self, content_type: str, hint) -> None:
        response = _response(text="x: 1", headers={"content-type": content_type})
        with patch("speclens.parser.loader.httpx.get", return_value=response):
            assert _fetch("https://example.com/spec") == ("x: 1", hint)

    def test_http_error(self) -> None:
        with patch("speclens.parser.loader.httpx.get", return_value=_response(status=404)):
            with pytest.raises(SpecParseError, match="HTTP 404"):
                _fetch("https://example.com/spec")

    def test_connection_error(self) -> None:
        with patch("speclens.parser.loader.httpx.get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(SpecParseError, match="Failed to fetch spec from https://down.example.com"):
                _fetch("https://down.example.com")

    def test_malformed_url(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid URL"):
            load_spec("http://example.com:port/spec")

    def test_invalid_url_from_client(self) -> None:
        with patch("speclens.parser.loader.httpx.get", side_effect=httpx.InvalidURL("bad host")):
            with pytest.raises(SpecParseError, match="Invalid URL https://example.com/spec: bad host"):
                _fetch("https://example.com/spec")


class TestParseDocument:
    def test_unknown_syntax_tries_json_then_yaml(self) -> None:
        assert parse_document('{"a": 1}') == {"a": 1}
        assert parse_document("a: 1") == {"a": 1}

    def test_json_hint_is_strict(self) -> None:
        with pytest.raises(SpecParseError, match="Invalid JSON"):
            parse_document("openapi: 3.0.0", "json")

    def test_yaml_hint_accepts_json(self) -> None:
        assert parse_document('{"a": [1, 2]}', "yaml") == {"a": [1, 2]}

    @pytest.mark.parametrize(
        "text, got",
        [("[1, 2]", "list"), ("- a\n- b\n", "list"), ("~", "empty document"), ("42", "int")],
    )
    def test_top_level_must_be_mapping(self, text: str, got: str) -> None:
        with pytest.raises(SpecParseError, match=f"must be a JSON/YAML object \\(got {got}\\)"):
            parse_document(text)

    def test_reports_both_errors(self) -> None:
        with pytest.raises(SpecParseError) as excinfo:
            parse_document("key: [unclosed")
        message = str(excinfo.value)
        assert "JSON or YAML" in message
        assert "JSON error" in message
        assert "YAML error" in message

    def test_yaml_hint_reports_only_yaml(self) -> None:
        with pytest.raises(SpecParseError) as excinfo:
            parse_document("key: [unclosed", "yaml")
        assert "JSON error" not in str(excinfo.value)

    def test_json_payload_round_trips_unicode(self) -> None:
        assert parse_document(json.dumps({"title": "Café API"})) == {"title": "Café API"}


class TestValidateSpecVersion:
    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0", "3.2.0"])
    def test_openapi_3(self, version: str) -> None:
        assert validate_spec_version({"openapi": version}) == version

    @pytest.mark.parametrize("version, expected", [("2.0", "2.0"), (2.0, "2.0")])
    def test_swagger_2(self, version, expected: str) -> None:
        assert validate_spec_version({"swagger": version}) == expected

    @pytest.mark.parametrize(
        "spec, message",
        [
            ({"openapi": "2.0"}, "Unsupported OpenAPI version: 2.0"),
            ({"openapi": "30.1"}, "Unsupported OpenAPI version"),
            ({"swagger": "1.2"}, "Unsupported Swagger version: 1.2"),
            ({"info": {}}, "Missing 'openapi' or 'swagger'"),
        ],
    )
    def test_rejected(self, spec: dict, message: str) -> None:
        with pytest.raises(SpecParseError, match=message):
            validate_spec_version(spec)
