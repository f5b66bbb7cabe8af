"""
Tests for the bulk user purge — pagination, error counting, filters.
"""

from pathlib import Path

from bbmigrate.adapters.base import ForumError
from bbmigrate.adapters.mock import MockForum
from bbmigrate.core.models.forum import UserRecord
from bbmigrate.core.use_cases.purge_users import parse_filters, purge_users, run_purge


def _page(start: int, size: int) -> list[UserRecord]:
    return [
        UserRecord(id=i, username=f"spam{i}", email=f"spam{i}@spam.example")
        for i in range(start, start + size)
    ]


class TestPagination:
    def test_stops_after_short_page(self):
        forum = MockForum()
        forum.script_user_pages([_page(1, 100), _page(101, 100), _page(201, 37)])

        summary = purge_users(forum, "spam.example", page_size=100)

        assert len(forum.user_page_requests) == 3
        assert summary.pages_fetched == 3
        assert summary.deleted == 237
        assert summary.errors == 0

    def test_deleted_users_drop_out_of_listing(self):
        forum = MockForum(page_size=2)
        for i in range(1, 6):
            forum.add_user(i, f"bot{i}", f"bot{i}@spam.example")
        forum.add_user(9, "alice", "alice@good.example")

        summary = purge_users(forum, "spam.example", page_size=2)

        assert summary.pages_fetched == 3
        assert summary.deleted == 5
        assert sorted(forum.deleted_users) == [1, 2, 3, 4, 5]
        assert list(forum.users) == [9]

    def test_empty_first_page(self):
        forum = MockForum()
        summary = purge_users(forum, "nobody")
        assert summary.pages_fetched == 1
        assert summary.deleted == 0


class TestErrors:
    def test_failed_delete_counted_and_skipped(self):
        forum = MockForum()
        for i in range(1, 4):
            forum.add_user(i, f"bot{i}", f"bot{i}@spam.example")
        forum.reject_delete(2, "Staff can't be deleted")

        summary = purge_users(forum, "spam.example")

        assert summary.deleted == 2
        assert summary.errors == 1
        assert summary.deleted_usernames == ["bot1", "bot3"]

    def test_full_page_of_failures_ends_filter(self):
        forum = MockForum(page_size=2)
        forum.add_user(1, "mod1", "mod1@spam.example")
        forum.add_user(2, "mod2", "mod2@spam.example")
        forum.reject_delete(1)
        forum.reject_delete(2)

        summary = purge_users(forum, "spam.example\nother.example", page_size=2)

        assert forum.user_page_requests == ["spam.example", "other.example"]
        assert summary.errors == 2

    def test_listing_failure_moves_to_next_filter(self):
        class FlakyListing(MockForum):
            def list_users(self, filter_expr):
                if filter_expr == "broken":
                    raise ForumError("HTTP 500")
                return super().list_users(filter_expr)

        forum = FlakyListing()
        forum.add_user(1, "bot1", "bot1@spam.example")

        summary = purge_users(forum, "broken\nspam.example")

        assert summary.errors == 1
        assert summary.deleted == 1

    def test_raising_delete_does_not_stop_purge(self, caplog):
        class DroppingDelete(MockForum):
            def delete_and_block_user(self, user_id, username):
                if user_id == 1:
                    raise ForumError("connection reset")
                return super().delete_and_block_user(user_id, username)

        forum = DroppingDelete()
        forum.add_user(1, "bot1", "bot1@spam.example")
        forum.add_user(2, "bot2", "bot2@spam.example")
        forum.add_user(3, "bot3", "bot3@other.example")

        summary = purge_users(forum, "spam.example\nother.example")

        assert forum.deleted_users == [2, 3]
        assert summary.deleted == 2
        assert summary.errors == 1
        assert summary.deleted_usernames == ["bot2", "bot3"]
        assert "Unexpected error deleting bot1 (id 1)" in caplog.text

    def test_unexpected_listing_error_abandons_only_that_filter(self, caplog):
        class BadPayload(MockForum):
            def list_users(self, filter_expr):
                if filter_expr == "broken":
                    raise KeyError("id")
                return super().list_users(filter_expr)

        forum = BadPayload()
        forum.add_user(1, "bot1", "bot1@spam.example")

        summary = purge_users(forum, "broken\nspam.example")

        assert summary.errors == 1
        assert summary.deleted == 1
        assert "Unexpected error listing users for 'broken'" in caplog.text


class TestFilters:
    def test_blank_lines_ignored(self):
        assert parse_filters("  spam.example \n\n\tbad.example\n") == ["spam.example", "bad.example"]

    def test_each_line_purged(self):
        forum = MockForum()
        forum.add_user(1, "a", "a@one.example")
        forum.add_user(2, "b", "b@two.example")

        summary = purge_users(forum, "one.example\n\ntwo.example\n")

        assert summary.filters == 2
        assert summary.deleted == 2


class TestRunPurge:
    def test_uses_configured_page_size(self, config_file: Path):
        config_file.write_text(config_file.read_text() + "purge_page_size: 2\n")
        forum = MockForum(page_size=2)
        for i in range(1, 4):
            forum.add_user(i, f"bot{i}", f"bot{i}@spam.example")

        result = run_purge("spam.example", config_path=config_file, client=forum)

        assert result.error is None
        assert result.summary.pages_fetched == 2
        assert result.summary.deleted == 3

    def test_missing_config(self, tmp_path: Path):
        result = run_purge("x", config_path=tmp_path / "nope.yml", client=MockForum())
        assert result.error is not None
