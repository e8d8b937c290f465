"""
Tests for key_store.py.

Covers:
  - parse_keys(): comma splitting, blanks, duplicates, order
  - load_api_keys(): env variable priority
  - mask(): safe display of keys in logs
"""
from __future__ import annotations

import pytest

import key_store


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in key_store.ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class TestParseKeys:
    def test_single_key(self):
        assert key_store.parse_keys("AIza-one") == ["AIza-one"]

    def test_comma_separated_keeps_order(self):
        assert key_store.parse_keys("k1,k2,k3") == ["k1", "k2", "k3"]

    def test_whitespace_trimmed(self):
        assert key_store.parse_keys(" k1 ,  k2 ") == ["k1", "k2"]

    def test_blank_entries_dropped(self):
        assert key_store.parse_keys("k1,,  ,k2,") == ["k1", "k2"]

    def test_duplicates_dropped_first_wins(self):
        assert key_store.parse_keys("k2,k1,k2") == ["k2", "k1"]

    def test_none_gives_empty(self):
        assert key_store.parse_keys(None) == []

    def test_empty_string_gives_empty(self):
        assert key_store.parse_keys("") == []


class TestLoadApiKeys:
    def test_gemini_api_key_preferred(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g1,g2")
        monkeypatch.setenv("API_KEY", "a1")
        assert key_store.load_api_keys() == ["g1", "g2"]

    def test_falls_back_to_api_key(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "a1")
        assert key_store.load_api_keys() == ["a1"]

    def test_falls_back_to_vite_api_key(self, monkeypatch):
        monkeypatch.setenv("VITE_API_KEY", "v1")
        assert key_store.load_api_keys() == ["v1"]

    def test_nothing_set_gives_empty(self):
        assert key_store.load_api_keys() == []


class TestMask:
    def test_none(self):
        assert key_store.mask(None) == "<not set>"

    def test_short_value_fully_hidden(self):
        assert key_store.mask("abc") == "****"

    def test_long_value_shows_ends_only(self):
        masked = key_store.mask("AIzaSyA1234567890XYZ")
        assert masked.startswith("AIza")
        assert masked.endswith("0XYZ")
        assert "1234567" not in masked
        assert len(masked) == len("AIzaSyA1234567890XYZ")
