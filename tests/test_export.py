"""Tests for exporting live rows to fixtures."""

import pytest

from rowseed.exceptions import UnresolvedDependencyError
from rowseed.export import ColumnSelector, export_fixtures
from rowseed.models import FixtureSet

PRIMARY_KEYS = {
    "users": ["id"],
    "posts": ["id"],
    "profiles": ["user_id"],
    "invites": ["id"],
    "groups": ["id"],
    "memberships": ["user_id", "group_id"],
    "assignments": ["id"],
}

COLUMNS = {
    "users": ["id", "email", "name"],
    "posts": ["id", "user_id", "title"],
    "profiles": ["user_id", "bio"],
    "invites": ["id", "email"],
    "groups": ["id", "name"],
    "memberships": ["user_id", "group_id"],
    "assignments": ["id", "user_id", "group_id"],
    "audit_log": ["message"],
}

FOREIGN_KEYS = [
    ("posts_user_id_fkey", "posts", "users", ["user_id"], ["id"]),
    ("profiles_user_id_fkey", "profiles", "users", ["user_id"], ["id"]),
    ("invites_email_fkey", "invites", "users", ["email"], ["email"]),
    ("memberships_user_id_fkey", "memberships", "users", ["user_id"], ["id"]),
    ("memberships_group_id_fkey", "memberships", "groups", ["group_id"], ["id"]),
    (
        "assignments_membership_fkey",
        "assignments",
        "memberships",
        ["user_id", "group_id"],
        ["user_id", "group_id"],
    ),
]


def _data(**overrides):
    data = {
        "users": [("1", "a@example.com", "Alice"), ("2", "b@example.com", "Bob")],
        "posts": [("10", "1", "Hello"), ("11", None, "Orphan")],
        "profiles": [("1", "Likes tea")],
        "invites": [("100", "b@example.com")],
        "groups": [("7", "Admins")],
        "memberships": [("1", "7")],
        "assignments": [("500", "1", "7")],
        "audit_log": [("should not be read",)],
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_conn(fake_conn, schema_responses):
    def make(**overrides):
        return fake_conn(
            schema_responses(PRIMARY_KEYS, COLUMNS, FOREIGN_KEYS, data=_data(**overrides))
        )

    return make


def test_export_rebuilds_references(make_conn):
    fixtures = export_fixtures(make_conn())

    assert fixtures.rows == {
        "users:literal(1)": {"email": "a@example.com", "name": "Alice"},
        "users:literal(2)": {"email": "b@example.com", "name": "Bob"},
        "posts:literal(10)": {"user_id": "users:literal(1)", "title": "Hello"},
        "posts:literal(11)": {"user_id": None, "title": "Orphan"},
        "profiles:literal(1)": {"bio": "Likes tea", "~dependencies": ["users:literal(1)"]},
        "invites:literal(100)": {
            "email": "b@example.com",
            "~dependencies": ["users:literal(2)"],
        },
        "groups:literal(7)": {"name": "Admins"},
        "memberships:literal(1.7)": {
            "user_id": "users:literal(1)",
            "group_id": "groups:literal(7)",
        },
        "assignments:literal(500)": {
            "user_id": "1",
            "group_id": "7",
            "~dependencies": ["memberships:literal(1.7)"],
        },
    }


def test_tables_without_primary_key_skipped(make_conn):
    conn = make_conn()

    fixtures = export_fixtures(conn)

    assert "audit_log" not in fixtures.table_counts()
    assert not any('"audit_log"' in text for text in conn.executed)


def test_excluded_table(make_conn):
    """References to an excluded table stay plain values."""
    conn = make_conn()

    fixtures = export_fixtures(conn, exclude_tables=["users"])

    assert "users" not in fixtures.table_counts()
    assert not any('FROM "public"."users"' in text for text in conn.executed)
    assert fixtures.rows["posts:literal(10)"]["user_id"] == "1"
    assert fixtures.rows["profiles:literal(1)"] == {"bio": "Likes tea"}
    assert fixtures.rows["invites:literal(100)"] == {"email": "b@example.com"}


def test_excluded_columns(make_conn):
    fixtures = export_fixtures(make_conn(), exclude_columns=["name", "posts.title"])

    assert fixtures.rows["users:literal(1)"] == {"email": "a@example.com"}
    assert fixtures.rows["groups:literal(7)"] == {}
    assert fixtures.rows["posts:literal(10)"] == {"user_id": "users:literal(1)"}


def test_table_with_every_column_excluded(make_conn):
    """A table left without columns is skipped, and so are references to it."""
    conn = make_conn()

    fixtures = export_fixtures(conn, exclude_columns=["groups.id", "groups.name"])

    assert "groups" not in fixtures.table_counts()
    assert not any('FROM "public"."groups"' in text for text in conn.executed)
    assert fixtures.rows["memberships:literal(1.7)"] == {
        "user_id": "users:literal(1)",
        "group_id": "7",
    }


def test_unresolved_dependency(make_conn):
    conn = make_conn(invites=[("100", "nobody@example.com")])

    with pytest.raises(UnresolvedDependencyError, match="nobody@example.com") as exc_info:
        export_fixtures(conn)

    assert exc_info.value.key == ("users", "invites_email_fkey", "nobody@example.com")


def test_ignore_on_update_stamps_rows(make_conn):
    fixtures = export_fixtures(make_conn(), ignore_on_update=["users.name"])

    assert fixtures.rows["users:literal(1)"]["~ignore_on_update"] == ["name"]
    assert "~ignore_on_update" not in fixtures.rows["groups:literal(7)"]


def test_ignore_on_update_keeps_prior_values(make_conn):
    """Designated columns keep the previous export's value."""
    prior = export_fixtures(make_conn(), ignore_on_update=["users.name"])
    renamed = [("1", "a@example.com", "Alicia"), ("2", "b@example.com", "Bob")]

    fixtures = export_fixtures(
        make_conn(users=renamed), ignore_on_update=["users.name"], prior=prior
    )

    assert fixtures.rows["users:literal(1)"]["name"] == "Alice"


def test_ignore_on_update_new_rows_use_live_value(make_conn):
    prior = FixtureSet.from_document({"rows": {"users:literal(1)": {"name": "Old"}}})

    fixtures = export_fixtures(make_conn(), ignore_on_update=["name"], prior=prior)

    assert fixtures.rows["users:literal(1)"]["name"] == "Old"
    assert fixtures.rows["users:literal(2)"]["name"] == "Bob"
    assert fixtures.rows["groups:literal(7)"]["~ignore_on_update"] == ["name"]


def test_no_stamp_without_designated_columns(make_conn):
    fixtures = export_fixtures(make_conn())

    assert all("~ignore_on_update" not in row for row in fixtures.rows.values())


def test_column_selector():
    selector = ColumnSelector(["created_at", "users.password"])

    assert selector.matches("posts", "created_at")
    assert selector.matches("users", "password")
    assert not selector.matches("posts", "password")
    assert not ColumnSelector()
