"""
Tests for linkshelf/cli.py

Runs main() against a temporary SQLite database and checks command output,
exit codes and output formats.
"""
import json
import pytest
from unittest.mock import patch

from linkshelf import cli
from linkshelf.metadata import Metadata, Priority
from linkshelf.models import Bookmark
from linkshelf.projection import ProjectedBookmark


@pytest.fixture
def db(clean_linkshelf_env):
    """Database path inside the clean environment."""
    return str(clean_linkshelf_env / "cli.db")


def run(db, *argv):
    cli.main(["--db", db, *argv])


def add(db, url, title):
    run(db, "-q", "add", url, "--title", title)


class TestArgumentParser:
    """Test parser structure."""

    def test_add_requires_title(self):
        parser = cli.build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["add", "example.com"])

    def test_command_is_required(self):
        parser = cli.build_parser()
        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_delete_takes_integer_ids(self):
        args = cli.build_parser().parse_args(["delete", "3", "4"])
        assert args.ids == [3, 4]

    def test_sort_choices(self):
        parser = cli.build_parser()
        assert parser.parse_args(["list", "--sort", "priority"]).sort == "priority"
        with pytest.raises(SystemExit):
            parser.parse_args(["list", "--sort", "random"])


class TestAddCommand:
    """Test `linkshelf add`."""

    def test_add_prints_confirmation(self, db, capsys):
        run(db, "add", "Example.com", "--title", "Example")

        out = capsys.readouterr().out
        assert "Added bookmark 1" in out
        assert "https://example.com" in out

    def test_quiet_add_prints_id(self, db, capsys):
        add(db, "example.com", "Example")
        add(db, "python.org", "Python")

        assert capsys.readouterr().out.split() == ["1", "2"]

    def test_invalid_url_exits_with_error(self, db, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run(db, "add", "not a url", "--title", "Broken")

        assert excinfo.value.code == 1
        assert "Invalid URL" in capsys.readouterr().out

    def test_blank_title_exits_with_error(self, db, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run(db, "add", "example.com", "--title", "  ")

        assert excinfo.value.code == 1
        assert "must not be empty" in capsys.readouterr().out


class TestListCommand:
    """Test `linkshelf list`."""

    @pytest.fixture
    def populated(self, db, capsys):
        add(db, "zeta.example", "Zeta")
        add(db, "alpha.example", "Alpha")
        add(db, "github.com", "GitHub")
        capsys.readouterr()
        return db

    def test_json_output_newest_first(self, populated, capsys):
        run(populated, "-o", "json", "list")

        data = json.loads(capsys.readouterr().out)
        assert [item["id"] for item in data] == [3, 2, 1]
        assert data[0] == {
            "id": 3,
            "title": "GitHub",
            "url": "https://github.com",
            "category": "General",
            "priority": "star",
        }

    def test_oldest_first(self, populated, capsys):
        run(populated, "-o", "urls", "list", "--oldest-first")

        assert capsys.readouterr().out.split() == [
            "https://zeta.example",
            "https://alpha.example",
            "https://github.com",
        ]

    def test_sort_by_title(self, populated, capsys):
        run(populated, "-o", "urls", "list", "--sort", "title")

        assert capsys.readouterr().out.split() == [
            "https://alpha.example",
            "https://github.com",
            "https://zeta.example",
        ]

    def test_search(self, populated, capsys):
        run(populated, "-o", "urls", "list", "--search", "ALP")

        assert capsys.readouterr().out.split() == ["https://alpha.example"]

    def test_table_output(self, populated, capsys):
        run(populated, "list")

        out = capsys.readouterr().out
        assert "Bookmarks" in out
        assert "alpha.example" in out

    def test_empty_list(self, db, capsys):
        run(db, "-o", "json", "list")
        assert json.loads(capsys.readouterr().out) == []


class TestDeleteCommand:
    """Test `linkshelf delete`."""

    def test_delete_existing_and_missing(self, db, capsys):
        add(db, "example.com", "Example")
        capsys.readouterr()

        run(db, "delete", "1", "99")

        out = capsys.readouterr().out
        assert "Deleted bookmark 1" in out
        assert "Bookmark not found: 99" in out

    def test_quiet_delete_prints_count(self, db, capsys):
        add(db, "example.com", "Example")
        add(db, "python.org", "Python")
        capsys.readouterr()

        run(db, "-q", "delete", "1", "2")

        assert capsys.readouterr().out.strip() == "2"

    def test_deleted_id_not_reused(self, db, capsys):
        add(db, "example.com", "Example")
        run(db, "-q", "delete", "1")
        add(db, "python.org", "Python")

        assert capsys.readouterr().out.split() == ["1", "1", "2"]


class TestOpenCommand:
    """Test `linkshelf open`."""

    def test_open_uses_browser(self, db, capsys):
        add(db, "example.com", "Example")

        with patch("linkshelf.cli.webbrowser.open") as mock_open:
            run(db, "open", "1")

        mock_open.assert_called_once_with("https://example.com")

    def test_open_missing_exits(self, db, capsys):
        with patch("linkshelf.cli.webbrowser.open") as mock_open:
            with pytest.raises(SystemExit) as excinfo:
                run(db, "open", "5")

        assert excinfo.value.code == 1
        mock_open.assert_not_called()


class TestConfigCommand:
    """Test `linkshelf config`."""

    def test_show_key(self, db, capsys):
        run(db, "config", "show", "default_sort")
        assert capsys.readouterr().out.strip() == "recency"

    def test_show_all_is_json(self, db, capsys):
        run(db, "config", "show")
        data = json.loads(capsys.readouterr().out)
        assert data["database"] == db

    def test_show_unknown_key(self, db):
        with pytest.raises(SystemExit):
            run(db, "config", "show", "nope")

    def test_set_saves_user_config(self, db, clean_linkshelf_env):
        run(db, "config", "set", "newest_first", "false")

        saved = clean_linkshelf_env / "home" / ".config" / "linkshelf" / "config.toml"
        assert "newest_first = false" in saved.read_text()


class TestFormatting:
    """Test output helpers."""

    def test_plain_format(self):
        item = ProjectedBookmark(
            Bookmark(title="Example", url="https://example.com", id=4),
            Metadata(priority=Priority.HOT, category="Work"),
        )
        text = cli.format_bookmark(item, "plain")
        assert text.splitlines()[0] == "[4] 🔥 Example"
        assert "#Work" in text

    def test_table_escapes_markup(self):
        item = ProjectedBookmark(Bookmark(title="[bold]x[/bold]", url="https://x.example", id=1), Metadata())
        table = cli.bookmark_table([item])
        assert table.row_count == 1
