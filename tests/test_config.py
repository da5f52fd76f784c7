"""Tests for the configuration module."""

from pathlib import Path

import pytest

from hugr_core import HugrError
from hugr_core._config import (
    ConfigError,
    HugrConfig,
    find_pyproject_toml,
    get_config,
    load_config,
    parse_config,
)


class TestFindPyprojectToml:
    """Tests for find_pyproject_toml function."""

    def test_finds_in_current_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in current directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        result = find_pyproject_toml(tmp_path)

        assert result == pyproject

    def test_finds_in_parent_directory(self, tmp_path: Path) -> None:
        """Should find pyproject.toml in parent directory."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        subdir = tmp_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        result = find_pyproject_toml(subdir)

        assert result == pyproject

    def test_returns_none_when_not_found(self, tmp_path: Path) -> None:
        result = find_pyproject_toml(tmp_path)

        assert result is None


class TestParseConfig:
    """Tests for parsing the [tool.hugr-core] table."""

    def test_empty_table_gives_defaults(self) -> None:
        assert parse_config({}) == HugrConfig()

    def test_all_keys(self, tmp_path: Path) -> None:
        config = parse_config(
            {"extension-inference": False, "check-extensions": False, "serialization-format": "toml"},
            tmp_path,
        )

        assert config == HugrConfig(
            extension_inference=False,
            check_extensions=False,
            serialization_format="toml",
            project_root=tmp_path,
        )

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="Unknown keys"):
            parse_config({"extension_inference": False})

    def test_non_boolean_flag(self) -> None:
        with pytest.raises(ConfigError, match="expected boolean"):
            parse_config({"check-extensions": "yes"})

    def test_unknown_format(self) -> None:
        with pytest.raises(ConfigError, match="serialization-format"):
            parse_config({"serialization-format": "yaml"})

    def test_config_errors_are_hugr_errors(self) -> None:
        with pytest.raises(HugrError) as excinfo:
            parse_config({"check-extensions": 1})
        assert isinstance(excinfo.value, ConfigError)
        assert excinfo.value.node is None


class TestLoadConfig:
    """Tests for loading config from a pyproject.toml file."""

    def test_reads_section(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text(
            """
[tool.hugr-core]
extension-inference = false
serialization-format = "toml"
""",
        )

        config = load_config(pyproject)

        assert config.extension_inference is False
        assert config.check_extensions is True
        assert config.serialization_format == "toml"
        assert config.project_root == tmp_path

    def test_missing_section_gives_defaults(self, tmp_path: Path) -> None:
        """Should return defaults when [tool.hugr-core] is absent."""
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[project]\nname = 'test'\n")

        config = load_config(pyproject)

        assert config == HugrConfig(project_root=tmp_path)

    def test_section_not_a_table(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[tool]\nhugr-core = "json"\n')

        with pytest.raises(ConfigError, match="expected a table"):
            load_config(pyproject)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.hugr-core\n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(pyproject)


class TestGetConfig:
    """Tests for get_config function."""

    def test_defaults_without_pyproject(self, tmp_path: Path) -> None:
        assert get_config(tmp_path) == HugrConfig()

    def test_found_from_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.hugr-core]\ncheck-extensions = false\n")
        subdir = tmp_path / "a" / "b"
        subdir.mkdir(parents=True)

        config = get_config(subdir)

        assert config.check_extensions is False
        assert config.project_root == tmp_path

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.hugr-core]\nserialization-format = "toml"\n')
        monkeypatch.chdir(tmp_path)

        assert get_config().serialization_format == "toml"
