"""Unit tests for settings and the sources-table loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from hu5events.config import DEFAULT_SOURCES_PATH, Settings, is_source_skipped, load_config
from hu5events.models.source import JsonLdSourceConfig, TabularSourceConfig, WeeklySourceConfig
from hu5events.utils.errors import ConfigurationError

MINIMAL = """
city:
  name: Hull
venues:
  - name: Hoi
    address: 22-24 Princes Ave, Hull HU5 3QA
sources:
  - kind: csv
    name: Hoi
    url: https://docs.example/hoi.csv
"""


# ======================================================================
# Settings
# ======================================================================


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TIMEZONE", raising=False)
        monkeypatch.delenv("CACHE_PATH", raising=False)
        settings = Settings(_env_file=None)
        assert settings.timezone == "Europe/London"
        assert settings.cache_path == "public/events.json"
        assert settings.default_event_time == "20:00"

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FETCH_CONCURRENCY", "3")
        monkeypatch.setenv("CACHE_PATH", "/tmp/feed.json")
        settings = Settings(_env_file=None)
        assert settings.fetch_concurrency == 3
        assert settings.cache_path == "/tmp/feed.json"

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_skip_switch_truthy(self, value: str) -> None:
        assert is_source_skipped("dive", {"SKIP_DIVE": value})

    @pytest.mark.parametrize("value", ["", "0", "false", "no"])
    def test_skip_switch_falsy(self, value: str) -> None:
        assert not is_source_skipped("DIVE", {"SKIP_DIVE": value})

    def test_no_toggle_never_skipped(self) -> None:
        assert not is_source_skipped(None, {"SKIP_NONE": "1"})


# ======================================================================
# load_config
# ======================================================================


class TestLoadConfig:
    def test_bundled_table(self) -> None:
        table = load_config()
        assert DEFAULT_SOURCES_PATH.is_file()
        assert table.city.name == "Hull"
        assert table.city.timezone == "Europe/London"
        kinds = {type(s) for s in table.sources}
        assert kinds == {TabularSourceConfig, JsonLdSourceConfig, WeeklySourceConfig}
        assert any(s.always_free for s in table.sources)
        assert table.recurring_merges[0].canonical_name == "Mr Moody's Tavern"

    def test_bundled_venue_names_are_unique(self) -> None:
        names = [v.name for v in load_config().venues]
        assert len(names) == len(set(names))

    def test_custom_table(self, tmp_path: Path) -> None:
        path = tmp_path / "sources.yaml"
        path.write_text(MINIMAL, encoding="utf-8")
        table = load_config(path)
        assert [s.name for s in table.sources] == ["Hoi"]
        assert table.recurring_merges == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "sources.yaml"
        path.write_text("city: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="YAML"):
            load_config(path)

    def test_unknown_source_kind(self, tmp_path: Path) -> None:
        path = tmp_path / "sources.yaml"
        path.write_text(MINIMAL.replace("kind: csv", "kind: rss"), encoding="utf-8")
        with pytest.raises(ConfigurationError, match="invalid"):
            load_config(path)

    def test_bad_regex(self, tmp_path: Path) -> None:
        path = tmp_path / "sources.yaml"
        bad = MINIMAL + (
            "recurring_merges:\n"
            "  - canonical_name: Hoi\n"
            "    venue_pattern: '(unclosed'\n"
            "    title_pattern: lunch\n"
        )
        path.write_text(bad, encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(path)
