"""Shared pytest fixtures for scriptsync tests."""

import json
from pathlib import Path

import pytest
from dotenv import load_dotenv

from scriptsync.config import Config
from scriptsync.config_loader import load_project_settings
from scriptsync.sync.engine import ProjectFiles
from scriptsync.sync.models import RemoteFileRecord

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live content API",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live content API"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        # --run-live given: do not skip live tests
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeGateway:
    """In-memory ContentGateway: replace_content becomes the next fetch."""

    def __init__(self, files=None):
        self.files = list(files or [])
        self.fetch_calls = []
        self.replace_calls = []
        self.fetch_error = None
        self.replace_error = None

    def fetch_content(self, script_id, version=None):
        self.fetch_calls.append((script_id, version))
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.files)

    def replace_content(self, script_id, files):
        self.replace_calls.append((script_id, list(files)))
        if self.replace_error is not None:
            raise self.replace_error
        self.files = list(files)


@pytest.fixture
def mock_config():
    """Create an authenticated Config instance for testing."""
    return Config(
        api_url="https://script.example.com/v1",
        access_token="test-token",
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def remote_record():
    """Factory fixture for RemoteFileRecord instances."""

    def _create(name, type, source=None):
        return RemoteFileRecord(name=name, type=type, source=source)

    return _create


@pytest.fixture
def write_tree(tmp_path):
    """Factory fixture writing ``{relative_path: content}`` under tmp_path."""

    def _write(files, root=None):
        base = Path(root) if root else tmp_path
        for rel_path, content in files.items():
            path = base / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return base

    return _write


@pytest.fixture
def make_project(tmp_path, mock_config, gateway, write_tree):
    """Factory fixture building a ProjectFiles over a tmp project tree.

    Args (of the returned factory):
        files: ``{relative_path: content}`` written under the project root.
        project: Extra keys merged into ``.scriptsync.json``.
        ignore: Text of ``.scriptsyncignore``; omitted for the defaults.
        config: Config to use instead of ``mock_config``.
    """

    def _make(files=None, project=None, ignore=None, config=None):
        write_tree(files or {})
        data = {"scriptId": "abc123", **(project or {})}
        (tmp_path / ".scriptsync.json").write_text(
            json.dumps(data), encoding="utf-8"
        )
        if ignore is not None:
            (tmp_path / ".scriptsyncignore").write_text(
                ignore, encoding="utf-8"
            )
        settings = load_project_settings(start_dir=tmp_path)
        return ProjectFiles(
            settings=settings,
            config=config or mock_config,
            gateway=gateway,
            cwd=tmp_path,
        )

    return _make
