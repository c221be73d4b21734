"""Tests for scriptsync.config_loader: user config and project settings."""

import json
import textwrap
from pathlib import Path

import pytest

from scriptsync.config_loader import (
    _load_yaml_with_includes,
    discover_config_files,
    find_project_file,
    interpolate_env_vars,
    load_hierarchical_config,
    load_ignore_patterns,
    load_project_settings,
)
from scriptsync.sync.ignore import DEFAULT_IGNORE_PATTERNS


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Run in tmp_path with an empty HOME and no SCRIPTSYNC_CONFIG."""
    monkeypatch.delenv("SCRIPTSYNC_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    monkeypatch.setenv("HOME", str(home))
    return home


def _write_project(directory: Path, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / ".scriptsync.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# -------------------------------------------------------------------------
# Env var interpolation and !include
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "abc")
        assert interpolate_env_vars("Bearer ${MY_TOKEN}") == "Bearer abc"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ:-fallback}") == "fallback"

    def test_unset_without_default_is_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"


class TestIncludeDirective:
    def test_include_relative_file(self, tmp_path):
        (tmp_path / "secrets.yml").write_text("access_token: t0k\n")
        main = tmp_path / "config.yml"
        main.write_text("api: !include secrets.yml\n")
        assert _load_yaml_with_includes(main) == {
            "api": {"access_token": "t0k"}
        }

    def test_circular_include_raises(self, tmp_path):
        (tmp_path / "a.yml").write_text("x: !include b.yml\n")
        (tmp_path / "b.yml").write_text("y: !include a.yml\n")
        with pytest.raises(ValueError, match="Circular include"):
            _load_yaml_with_includes(tmp_path / "a.yml")

    def test_include_nonexistent_raises(self, tmp_path):
        main = tmp_path / "config.yml"
        main.write_text("api: !include missing.yml\n")
        with pytest.raises(FileNotFoundError, match="missing.yml"):
            _load_yaml_with_includes(main)


# -------------------------------------------------------------------------
# User config discovery and merge
# -------------------------------------------------------------------------


class TestDiscoverConfigFiles:
    def test_env_var_takes_highest_precedence(
        self, tmp_path, isolated_home, monkeypatch
    ):
        custom = tmp_path / "custom.yml"
        custom.write_text("api: {}\n")
        monkeypatch.setenv("SCRIPTSYNC_CONFIG", str(custom))
        assert discover_config_files()[0] == custom.resolve()

    def test_project_before_global(self, tmp_path, isolated_home):
        project = tmp_path / ".scriptsync" / "config.yml"
        project.parent.mkdir()
        project.write_text("api: {}\n")
        global_cfg = isolated_home / ".config" / "scriptsync" / "config.yml"
        global_cfg.parent.mkdir(parents=True)
        global_cfg.write_text("api: {}\n")

        result = discover_config_files()
        assert result.index(project) < result.index(global_cfg)

    def test_missing_files_excluded(self, isolated_home):
        assert discover_config_files() == []


class TestLoadHierarchicalConfig:
    def test_project_replaces_global_section(self, tmp_path, isolated_home):
        global_cfg = isolated_home / ".config" / "scriptsync" / "config.yml"
        global_cfg.parent.mkdir(parents=True)
        global_cfg.write_text(
            textwrap.dedent("""\
            api:
              url: https://global.example.com
              access_token: global-token
            logging:
              level: DEBUG
            """)
        )
        project = tmp_path / ".scriptsync" / "config.yml"
        project.parent.mkdir()
        project.write_text("api:\n  url: https://project.example.com\n")

        result = load_hierarchical_config()
        assert result["api"] == {"url": "https://project.example.com"}
        assert result["logging"] == {"level": "DEBUG"}

    def test_env_var_interpolation(self, tmp_path, isolated_home, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "s3cret")
        project = tmp_path / ".scriptsync" / "config.yml"
        project.parent.mkdir()
        project.write_text('api:\n  access_token: "${MY_TOKEN}"\n')

        assert load_hierarchical_config()["api"]["access_token"] == "s3cret"

    def test_zero_config_returns_empty_dict(self, isolated_home):
        assert load_hierarchical_config() == {}

    def test_non_dict_root_skipped(self, tmp_path, isolated_home, monkeypatch):
        bad = tmp_path / "bad.yml"
        bad.write_text("- item1\n- item2\n")
        monkeypatch.setenv("SCRIPTSYNC_CONFIG", str(bad))
        assert load_hierarchical_config() == {}


# -------------------------------------------------------------------------
# Project file discovery
# -------------------------------------------------------------------------


class TestFindProjectFile:
    def test_walks_up_from_start_dir(self, tmp_path):
        project = _write_project(tmp_path, {"scriptId": "abc"})
        nested = tmp_path / "src" / "lib"
        nested.mkdir(parents=True)
        assert find_project_file(nested) == project

    def test_explicit_directory(self, tmp_path):
        project = _write_project(tmp_path / "other", {"scriptId": "abc"})
        assert find_project_file(tmp_path, str(tmp_path / "other")) == project

    def test_explicit_missing_file(self, tmp_path):
        assert find_project_file(tmp_path, str(tmp_path / "nope.json")) is None


# -------------------------------------------------------------------------
# Ignore file
# -------------------------------------------------------------------------


class TestLoadIgnorePatterns:
    def test_missing_file_uses_defaults(self, tmp_path):
        patterns = load_ignore_patterns(tmp_path / ".scriptsyncignore")
        assert patterns == list(DEFAULT_IGNORE_PATTERNS)

    def test_none_uses_defaults(self):
        assert load_ignore_patterns(None) == list(DEFAULT_IGNORE_PATTERNS)

    def test_comments_blank_lines_and_bom_dropped(self, tmp_path):
        ignore = tmp_path / ".scriptsyncignore"
        ignore.write_text(
            "\ufeff# comment\n\n**/*.md\n  node_modules/**  \n!keep.md\n",
            encoding="utf-8",
        )
        assert load_ignore_patterns(ignore) == [
            "**/*.md",
            "node_modules/**",
            "!keep.md",
        ]

    def test_empty_file_means_no_patterns(self, tmp_path):
        ignore = tmp_path / ".scriptsyncignore"
        ignore.write_text("# nothing ignored\n")
        assert load_ignore_patterns(ignore) == []


# -------------------------------------------------------------------------
# Project settings
# -------------------------------------------------------------------------


class TestLoadProjectSettings:
    def test_full_project_file(self, tmp_path):
        config_path = _write_project(
            tmp_path,
            {
                "scriptId": "abc123",
                "projectId": "my-gcp-project",
                "parentId": ["drive-folder", "other"],
                "rootDir": "build",
                "filePushOrder": ["build/a.js"],
                "scriptExtensions": ["GS", ".js"],
                "htmlExtensions": [".htm"],
                "ignoreSubdirectories": True,
            },
        )
        settings = load_project_settings(start_dir=tmp_path)

        assert settings.script_id == "abc123"
        assert settings.project_id == "my-gcp-project"
        assert settings.parent_id == "drive-folder"
        assert settings.config_file_path == str(config_path)
        assert settings.is_configured

        files = settings.files
        assert files.project_root_dir == str(tmp_path)
        assert files.content_dir == str(tmp_path / "build")
        assert files.push_order == ["build/a.js"]
        assert files.extensions.source_code == [".gs", ".js"]
        assert files.extensions.markup == [".htm"]
        assert files.extensions.manifest == [".json"]
        assert files.skip_subdirectories is True
        assert files.ignore_patterns == list(DEFAULT_IGNORE_PATTERNS)

    def test_src_dir_preferred_over_root_dir(self, tmp_path):
        _write_project(
            tmp_path, {"scriptId": "abc", "srcDir": "src", "rootDir": "build"}
        )
        settings = load_project_settings(start_dir=tmp_path)
        assert settings.files.content_dir == str(tmp_path / "src")

    def test_content_dir_override(self, tmp_path):
        _write_project(tmp_path, {"scriptId": "abc", "rootDir": "build"})
        settings = load_project_settings(start_dir=tmp_path, content_dir="dist")
        assert settings.files.content_dir == str(tmp_path / "dist")

    def test_legacy_file_extension(self, tmp_path):
        _write_project(tmp_path, {"scriptId": "abc", "fileExtension": "ts"})
        settings = load_project_settings(start_dir=tmp_path)
        assert settings.files.extensions.source_code == [".ts"]

    def test_ignore_file_next_to_project(self, tmp_path):
        _write_project(tmp_path, {"scriptId": "abc"})
        (tmp_path / ".scriptsyncignore").write_text("**/*.md\n")
        settings = load_project_settings(start_dir=tmp_path / ".")
        assert settings.files.ignore_patterns == ["**/*.md"]
        assert settings.files.ignore_file_path == str(
            tmp_path / ".scriptsyncignore"
        )

    def test_explicit_ignore_file(self, tmp_path):
        _write_project(tmp_path, {"scriptId": "abc"})
        custom = tmp_path / "custom.ignore"
        custom.write_text("*.txt\n")
        settings = load_project_settings(
            start_dir=tmp_path, ignore_file=str(custom)
        )
        assert settings.files.ignore_patterns == ["*.txt"]

    def test_no_project_file(self, tmp_path):
        settings = load_project_settings(start_dir=tmp_path)
        assert settings.script_id is None
        assert not settings.is_configured
        assert settings.files.content_dir == str(tmp_path)

    def test_missing_script_id_not_configured(self, tmp_path):
        _write_project(tmp_path, {"rootDir": "."})
        assert not load_project_settings(start_dir=tmp_path).is_configured

    def test_invalid_json_raises(self, tmp_path):
        (tmp_path / ".scriptsync.json").write_text("{not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_project_settings(start_dir=tmp_path)

    def test_non_object_raises(self, tmp_path):
        (tmp_path / ".scriptsync.json").write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_project_settings(start_dir=tmp_path)
