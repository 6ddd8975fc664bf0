"""Tests for ConfigFileLoader discovery and parsing."""

from pathlib import Path

import pytest

from rspec_style_linter.domain.errors import ConfigError
from rspec_style_linter.infrastructure.config_file_loader import ConfigFileLoader


class TestLoadExplicit:
    """--config accepts YAML or JSON."""

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "style.yml"
        path.write_text("disabled_rules:\n  - expect-syntax\nfail_on: warning\n", encoding="utf-8")
        data, source = ConfigFileLoader.load_explicit(str(path))
        assert data == {"disabled_rules": ["expect-syntax"], "fail_on": "warning"}
        assert source == str(path)

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "style.json"
        path.write_text('{"jobs": 2}', encoding="utf-8")
        assert ConfigFileLoader.load_explicit(str(path))[0] == {"jobs": 2}

    def test_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "style.yml"
        path.write_text("", encoding="utf-8")
        assert ConfigFileLoader.load_explicit(str(path))[0] == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read config file"):
            ConfigFileLoader.load_explicit(str(tmp_path / "nope.yml"))

    def test_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "style.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="malformed config file"):
            ConfigFileLoader.load_explicit(str(path))

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "style.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a mapping"):
            ConfigFileLoader.load_explicit(str(path))


class TestLoadConfigFromFs:
    """Discovery walks up for pyproject.toml, then falls back to the dotfile."""

    def test_pyproject_in_parent(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.rspec-style]\ndisabled_rules = ["short-description"]\n', encoding="utf-8"
        )
        nested = tmp_path / "spec" / "models"
        nested.mkdir(parents=True)
        data, source = ConfigFileLoader.load_config_from_fs(nested)
        assert data == {"disabled_rules": ["short-description"]}
        assert source == str((tmp_path / "pyproject.toml").resolve())

    def test_pyproject_without_section_falls_through(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.other]\nx = 1\n', encoding="utf-8")
        (tmp_path / ".rspec-style.yml").write_text("jobs: 4\n", encoding="utf-8")
        data, source = ConfigFileLoader.load_config_from_fs(tmp_path)
        assert data == {"jobs": 4}
        assert source.endswith(".rspec-style.yml")

    def test_defaults_when_nothing_found(self, tmp_path: Path) -> None:
        assert ConfigFileLoader.load_config_from_fs(tmp_path) == ({}, "<defaults>")

    def test_uses_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".rspec-style.yaml").write_text("fail_on: warning\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert ConfigFileLoader.load_config_from_fs()[0] == {"fail_on": "warning"}

    def test_malformed_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.rspec-style\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="malformed TOML"):
            ConfigFileLoader.load_config_from_fs(tmp_path)

    def test_section_must_be_a_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool]\n"rspec-style" = 3\n', encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a table"):
            ConfigFileLoader.load_config_from_fs(tmp_path)
