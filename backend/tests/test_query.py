"""
OrderDesk Backend: Query Builder Tests
======================================

Field names never reach SQL unless they are plain identifiers of a real
column; values are always bound. The database tests run against SQLite.
"""

import pytest

from orderdesk.models.order import Order
from orderdesk.models.user import User, UserColumn
from orderdesk.store.query import InvalidFieldError, Query, is_valid_field_name


class TestFieldNames:
    @pytest.mark.parametrize(
        "field",
        ["name", "email", "created_at", "updated_at", "users.email", "_private"],
    )
    def test_plain_identifiers_are_valid(self, field):
        assert is_valid_field_name(field) is True

    @pytest.mark.parametrize(
        "field",
        [
            "",
            "1name",
            "name;",
            "name--",
            "name/*x*/",
            "name OR 1=1",
            "drop_table",
            "users.delete",
            "SELECT",
            "union_all",
        ],
    )
    def test_keywords_and_special_tokens_are_rejected(self, field):
        assert is_valid_field_name(field) is False

    def test_unknown_column_is_rejected(self):
        with pytest.raises(InvalidFieldError, match="Unknown field"):
            Query(None, User).eq("password", "x")

    def test_other_table_qualifier_is_rejected(self):
        with pytest.raises(InvalidFieldError, match="does not belong"):
            Query(None, User).eq("orders.status", 1)

    def test_keyword_field_is_rejected_before_lookup(self):
        with pytest.raises(InvalidFieldError, match="Invalid field name"):
            Query(None, Order).order_by("drop_table")

    def test_none_and_empty_values_add_no_condition(self):
        query = Query(None, User).eq(UserColumn.STATUS, None).like(UserColumn.NAME, "")
        assert query._conditions == []


class TestQueryExecution:
    @pytest.mark.asyncio
    async def test_like_is_case_insensitive_substring(self, db_session, make_user):
        db_session.add_all([
            make_user(name="Alice", email="alice@x.com"),
            make_user(name="ALIson", email="alison@x.com"),
            make_user(name="Bob", email="bob@x.com"),
        ])
        await db_session.flush()

        rows = await Query(db_session, User).like(UserColumn.NAME, "ali").all()
        assert sorted(user.name for user in rows) == ["ALIson", "Alice"]

    @pytest.mark.asyncio
    async def test_like_escapes_wildcards(self, db_session, make_user):
        db_session.add_all([
            make_user(name="100% cotton", email="c@x.com"),
            make_user(name="plain", email="p@x.com"),
        ])
        await db_session.flush()

        assert await Query(db_session, User).like(UserColumn.NAME, "%").count() == 1
        assert await Query(db_session, User).like(UserColumn.NAME, "_").count() == 0

    @pytest.mark.asyncio
    async def test_count_ignores_paging(self, db_session, make_user):
        db_session.add_all([make_user(email=f"u{i}@x.com") for i in range(5)])
        await db_session.flush()

        query = Query(db_session, User).eq(UserColumn.STATUS, 1).page(2, 2)
        assert await query.count() == 5
        assert len(await query.all()) == 2

    @pytest.mark.asyncio
    async def test_order_by_ascending(self, db_session, make_user):
        db_session.add_all([
            make_user(name="c", email="c@x.com"),
            make_user(name="a", email="a@x.com"),
            make_user(name="b", email="b@x.com"),
        ])
        await db_session.flush()

        rows = await Query(db_session, User).order_by(UserColumn.NAME).all()
        assert [user.name for user in rows] == ["a", "b", "c"]
