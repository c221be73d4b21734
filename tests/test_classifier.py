"""Tests for scriptsync.sync.classifier: kinds, remote names, extensions."""

import pytest

from scriptsync.config_schema import ExtensionTable
from scriptsync.errors import InvalidFileType
from scriptsync.sync.classifier import (
    MANIFEST_NAME,
    classify,
    default_extension,
    local_name_for,
    remote_name_for,
)
from scriptsync.sync.models import FileKind

# -------------------------------------------------------------------------
# classify()
# -------------------------------------------------------------------------


class TestClassify:
    @pytest.fixture
    def table(self):
        return ExtensionTable()

    @pytest.mark.parametrize(
        "name, kind",
        [
            ("Code.js", FileKind.SOURCE_CODE),
            ("Code.gs", FileKind.SOURCE_CODE),
            ("lib/Util.GS", FileKind.SOURCE_CODE),
            ("page.html", FileKind.MARKUP),
            ("appsscript.json", FileKind.MANIFEST),
            ("nested/appsscript.json", FileKind.MANIFEST),
            ("data.json", FileKind.UNKNOWN),
            ("README.md", FileKind.UNKNOWN),
            ("Makefile", FileKind.UNKNOWN),
        ],
    )
    def test_default_table(self, table, name, kind):
        assert classify(name, table) == kind

    def test_source_code_checked_before_markup(self):
        table = ExtensionTable(source_code=[".html"], markup=[".html"])
        assert classify("page.html", table) == FileKind.SOURCE_CODE

    def test_manifest_recognised_with_reconfigured_json_table(self):
        table = ExtensionTable(manifest=[".jsonc"])
        assert classify("appsscript.json", table) == FileKind.MANIFEST
        assert classify("appsscript.jsonc", table) == FileKind.MANIFEST

    def test_json_with_other_basename_is_never_manifest(self):
        table = ExtensionTable(manifest=[".json"])
        assert classify("settings.json", table) == FileKind.UNKNOWN

    def test_custom_script_extension(self):
        table = ExtensionTable(source_code=[".ts"])
        assert classify("Code.ts", table) == FileKind.SOURCE_CODE
        assert classify("Code.js", table) == FileKind.UNKNOWN


# -------------------------------------------------------------------------
# remote_name_for() / local_name_for()
# -------------------------------------------------------------------------


class TestRemoteNames:
    def test_extension_stripped(self):
        assert remote_name_for("Code.js", FileKind.SOURCE_CODE) == "Code"

    def test_subdirectory_kept(self):
        assert (
            remote_name_for("lib/util.gs", FileKind.SOURCE_CODE) == "lib/util"
        )

    def test_backslashes_normalised(self):
        assert remote_name_for("lib\\util.js", FileKind.SOURCE_CODE) == "lib/util"

    def test_only_last_extension_stripped(self):
        assert remote_name_for("a.b.js", FileKind.SOURCE_CODE) == "a.b"

    def test_manifest_always_fixed_name(self):
        assert (
            remote_name_for("config/appsscript.json", FileKind.MANIFEST)
            == MANIFEST_NAME
        )

    def test_local_name_uses_first_extension(self):
        table = ExtensionTable(source_code=[".gs", ".js"])
        assert local_name_for("lib/util", FileKind.SOURCE_CODE, table) == "lib/util.gs"

    def test_local_name_manifest_ignores_table(self):
        table = ExtensionTable(manifest=[".jsonc"])
        assert (
            local_name_for("appsscript", FileKind.MANIFEST, table)
            == "appsscript.json"
        )


# -------------------------------------------------------------------------
# default_extension()
# -------------------------------------------------------------------------


class TestDefaultExtension:
    def test_defaults(self):
        table = ExtensionTable()
        assert default_extension(FileKind.SOURCE_CODE, table) == ".js"
        assert default_extension(FileKind.MARKUP, table) == ".html"
        assert default_extension(FileKind.MANIFEST, table) == ".json"

    def test_accepts_api_type_names(self):
        assert default_extension("SERVER_JS", ExtensionTable()) == ".js"

    def test_configured_extension_normalised(self):
        table = ExtensionTable(source_code=["GS"])
        assert default_extension(FileKind.SOURCE_CODE, table) == ".gs"

    def test_empty_table_entry_falls_back(self):
        table = ExtensionTable(markup=[])
        assert default_extension(FileKind.MARKUP, table) == ".html"

    @pytest.mark.parametrize("kind", [FileKind.UNKNOWN, "BOGUS", None])
    def test_unknown_kind_raises(self, kind):
        with pytest.raises(InvalidFileType):
            default_extension(kind, ExtensionTable())
