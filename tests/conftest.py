import os
import pytest

from linkshelf import config as config_module
from linkshelf.models import Bookmark
from linkshelf.store import MemoryStore, SqlStore


@pytest.fixture
def sample_bookmarks():
    """Sample stored bookmarks, in id order."""
    return [
        Bookmark(title="Python Documentation", url="https://docs.python.org", id=1),
        Bookmark(title="GitHub", url="https://github.com", id=2),
        Bookmark(title="arXiv", url="https://arxiv.org/list/cs.LG/recent", id=3),
    ]


@pytest.fixture
def memory_store(sample_bookmarks):
    """MemoryStore pre-loaded with the sample bookmarks."""
    return MemoryStore(sample_bookmarks)


@pytest.fixture
def temp_db(tmp_path):
    """Path of a fresh SQLite database file."""
    return str(tmp_path / "test.db")


@pytest.fixture
def sql_store(temp_db):
    """Empty SqlStore on a temporary SQLite file."""
    store = SqlStore(path=temp_db)
    yield store
    store.dispose()


@pytest.fixture(autouse=True)
def reset_global_config():
    """Drop the cached global config between tests."""
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def clean_linkshelf_env(monkeypatch, tmp_path):
    """
    Fixture to create a clean Linkshelf environment without affecting real config.

    Removes LINKSHELF_ environment variables and sets HOME to a temp directory.
    """
    for key in list(os.environ.keys()):
        if key.startswith("LINKSHELF_"):
            monkeypatch.delenv(key, raising=False)

    mock_home = tmp_path / "home"
    mock_home.mkdir()
    monkeypatch.setenv("HOME", str(mock_home))
    monkeypatch.chdir(tmp_path)

    return tmp_path
