"""
Tests for configuration loading — bbmigrate.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from bbmigrate.core.config.loader import ConfigError, find_config_file, load_settings
from bbmigrate.core.use_cases.config_check import check_config


class TestLoadSettings:
    def test_load_valid(self, config_file: Path):
        settings = load_settings(config_file)
        assert settings.forum.base_url == "http://forum.test"
        assert settings.forum.api_key == "secret"
        assert settings.legacy_domain == "forum.example.org"
        assert settings.dry_run is False

    def test_defaults(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("forum:\n  url: http://forum.test\n")
        settings = load_settings(path)
        assert settings.aliases == {"Gary_Isaac_Wolf": "Agaricus"}
        assert settings.html_allowlist == ["a", "kbd", "img"]
        assert settings.insignificant_rules == ["rmCRs"]
        assert settings.purge_page_size == 100
        assert settings.quote_map is None
        assert settings.edit_reason_prefix == "Fix formatting post-migration: "

    def test_relative_paths_resolved_against_config(self, config_file: Path):
        settings = load_settings(config_file)
        assert Path(settings.quote_map) == config_file.parent.resolve() / "post_id_mapping.json"

    def test_env_api_key_overrides(self, config_file: Path, monkeypatch):
        monkeypatch.setenv("BBM_API_KEY", "from-env")
        assert load_settings(config_file).forum.api_key == "from-env"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("forum: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_settings(path)

    def test_missing_forum_section(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("dry_run: true\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(path)

    def test_bad_page_size(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("forum:\n  url: http://forum.test\npurge_page_size: 0\n")
        with pytest.raises(ConfigError):
            load_settings(path)


class TestFindConfigFile:
    def test_walks_up(self, config_file: Path):
        nested = config_file.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == config_file.resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_config_file(tmp_path) is None


class TestCheckConfig:
    def test_valid(self, config_file: Path):
        result = check_config(config_file)
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_api_key_and_quote_map_warn(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("BBM_API_KEY", raising=False)
        path = tmp_path / "bbmigrate.yml"
        path.write_text("forum:\n  url: http://forum.test\n")
        result = check_config(path)
        assert result.valid
        assert any("API key" in w for w in result.warnings)
        assert any("quote_map" in w for w in result.warnings)

    def test_unknown_insignificant_rule(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text(textwrap.dedent("""\
            forum:
              url: http://forum.test
              api_key: k
            insignificant_rules: [rmCRs, typo]
        """))
        result = check_config(path)
        assert not result.valid
        assert "typo" in result.errors[0]

    def test_non_http_url(self, tmp_path: Path):
        path = tmp_path / "bbmigrate.yml"
        path.write_text("forum:\n  url: forum.test\n  api_key: k\n")
        result = check_config(path)
        assert not result.valid

    def test_missing_quote_map_file(self, config_file: Path):
        (config_file.parent / "post_id_mapping.json").unlink()
        result = check_config(config_file)
        assert result.valid
        assert any("quote_map not found" in w for w in result.warnings)

    def test_to_dict(self, config_file: Path):
        data = check_config(config_file).to_dict()
        assert data["valid"] is True
        assert data["forum_url"] == "http://forum.test"
