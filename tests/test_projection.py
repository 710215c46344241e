"""
Tests for linkshelf/projection.py view projection.
"""
import pytest

from linkshelf.errors import UnknownCategory
from linkshelf.metadata import Metadata, Priority
from linkshelf.models import Bookmark
from linkshelf.projection import Criteria, SortMode, display_order, project


@pytest.fixture
def zeta_alpha():
    return [
        Bookmark(title="Zeta", url="https://zeta.example", id=1),
        Bookmark(title="Alpha", url="https://alpha.example", id=2),
    ]


def titles(items):
    return [item.title for item in items]


class TestSorting:
    """Test the three sort modes."""

    def test_by_title(self, zeta_alpha):
        view = project(zeta_alpha, {}, Criteria(sort=SortMode.TITLE))
        assert titles(view) == ["Alpha", "Zeta"]

    def test_by_recency_is_ascending_id(self, zeta_alpha):
        view = project(zeta_alpha, {}, Criteria(sort=SortMode.RECENCY))
        assert [item.id for item in view] == [1, 2]

    def test_recency_ignores_input_order(self, zeta_alpha):
        view = project(list(reversed(zeta_alpha)), {}, Criteria())
        assert [item.id for item in view] == [1, 2]

    def test_title_is_case_insensitive(self):
        bookmarks = [
            Bookmark(title="beta", url="https://b.example", id=1),
            Bookmark(title="Alpha", url="https://a.example", id=2),
        ]
        view = project(bookmarks, {}, Criteria(sort=SortMode.TITLE))
        assert titles(view) == ["Alpha", "beta"]

    def test_equal_titles_fall_back_to_id(self):
        bookmarks = [
            Bookmark(title="Same", url="https://b.example", id=7),
            Bookmark(title="same", url="https://a.example", id=3),
        ]
        view = project(bookmarks, {}, Criteria(sort=SortMode.TITLE))
        assert [item.id for item in view] == [3, 7]

    def test_by_priority_then_title(self):
        bookmarks = [
            Bookmark(title="Later", url="https://later.example", id=1),
            Bookmark(title="Urgent B", url="https://b.example", id=2),
            Bookmark(title="Urgent A", url="https://a.example", id=3),
            Bookmark(title="Normal", url="https://normal.example", id=4),
        ]
        metadata = {
            1: Metadata(priority=Priority.SLEEP),
            2: Metadata(priority=Priority.HOT),
            3: Metadata(priority=Priority.HOT),
            4: Metadata(),
        }
        view = project(bookmarks, metadata, Criteria(sort=SortMode.PRIORITY))
        assert titles(view) == ["Urgent A", "Urgent B", "Normal", "Later"]


class TestFiltering:
    """Test text and category filters."""

    def test_query_is_case_insensitive(self, zeta_alpha):
        view = project(zeta_alpha, {}, Criteria(query="alp"))
        assert titles(view) == ["Alpha"]

    def test_query_matches_url(self, zeta_alpha):
        view = project(zeta_alpha, {}, Criteria(query="ZETA.EXAMPLE"))
        assert titles(view) == ["Zeta"]

    def test_query_matching_nothing_is_empty(self, zeta_alpha):
        assert project(zeta_alpha, {}, Criteria(query="nothing here")) == []

    def test_blank_query_matches_everything(self, zeta_alpha):
        assert len(project(zeta_alpha, {}, Criteria(query="   "))) == 2

    def test_spaces_in_query_are_significant(self):
        bookmarks = [
            Bookmark(title="Alpha", url="https://alpha.example", id=1),
            Bookmark(title="Data Lab", url="https://lab.example", id=2),
        ]
        assert titles(project(bookmarks, {}, Criteria(query="a"))) == ["Alpha", "Data Lab"]
        assert titles(project(bookmarks, {}, Criteria(query="a "))) == ["Data Lab"]

    def test_category_excludes_other_categories(self, zeta_alpha):
        metadata = {1: Metadata(category="Work"), 2: Metadata(category="Fun")}
        view = project(zeta_alpha, metadata, Criteria(category="Work"))
        assert titles(view) == ["Zeta"]

    def test_missing_metadata_counts_as_default_category(self, zeta_alpha):
        view = project(zeta_alpha, {1: Metadata(category="Work")}, Criteria(category="General"))
        assert titles(view) == ["Alpha"]

    def test_query_and_category_combine(self, zeta_alpha):
        metadata = {1: Metadata(category="Work"), 2: Metadata(category="Work")}
        view = project(zeta_alpha, metadata, Criteria(query="z", category="Work"))
        assert titles(view) == ["Zeta"]

    def test_unknown_category_rejected(self):
        with pytest.raises(UnknownCategory):
            Criteria(category="Recipes")


class TestCriteria:
    """Test validation of criteria fields."""

    def test_sort_name_is_parsed(self, zeta_alpha):
        criteria = Criteria(sort="Title")
        assert criteria.sort is SortMode.TITLE
        assert titles(project(zeta_alpha, {}, criteria)) == ["Alpha", "Zeta"]

    def test_with_changes_parses_sort_name(self):
        assert Criteria().with_changes(sort="priority").sort is SortMode.PRIORITY

    @pytest.mark.parametrize("sort", ["random", 3, None])
    def test_unknown_sort_rejected(self, sort):
        with pytest.raises(ValueError):
            Criteria(sort=sort)


class TestProjectionProperties:
    """Test purity of project()."""

    @pytest.mark.parametrize("criteria", [
        Criteria(),
        Criteria(sort=SortMode.TITLE),
        Criteria(sort=SortMode.PRIORITY, category="Work"),
        Criteria(query="example", reverse=True),
    ])
    def test_deterministic(self, sample_bookmarks, criteria):
        metadata = {1: Metadata(category="Work", priority=Priority.HOT), 2: Metadata(category="Work")}
        first = project(sample_bookmarks, metadata, criteria)
        second = project(sample_bookmarks, dict(metadata), criteria)
        assert first == second

    def test_returns_fresh_list(self, sample_bookmarks):
        first = project(sample_bookmarks, {}, Criteria())
        first.clear()
        assert len(project(sample_bookmarks, {}, Criteria())) == 3

    def test_projected_items_carry_metadata(self, zeta_alpha):
        view = project(zeta_alpha, {2: Metadata(category="Study")}, Criteria(sort=SortMode.TITLE))
        assert view[0].metadata.category == "Study"
        assert view[1].metadata == Metadata()


class TestDisplayOrder:
    """Test the reverse display hint."""

    def test_reverse(self, zeta_alpha):
        criteria = Criteria(reverse=True)
        view = project(zeta_alpha, {}, criteria)
        assert [item.id for item in display_order(view, criteria)] == [2, 1]

    def test_project_ignores_reverse(self, zeta_alpha):
        view = project(zeta_alpha, {}, Criteria(reverse=True))
        assert [item.id for item in view] == [1, 2]

    def test_no_reverse(self, zeta_alpha):
        criteria = Criteria()
        view = project(zeta_alpha, {}, criteria)
        assert display_order(view, criteria) == view


class TestSortModeParse:
    """Test parsing sort mode names."""

    def test_parse(self):
        assert SortMode.parse(" Title ") is SortMode.TITLE

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown sort mode"):
            SortMode.parse("random")
