"""
OrderDesk Backend: Repository Tests (SQLite)
============================================

What we test:
    ✅ CRUD round trips through UserRepository / OrderRepository
    ✅ Sentinel errors: RecordNotFoundError, RecordConflictError
    ✅ Filtered, paged listings with totals
    ✅ Scoped repositories inside transaction()
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from orderdesk.database import transaction
from orderdesk.exceptions import RecordConflictError, RecordNotFoundError, RepositoryError
from orderdesk.models.order import OrderStatus
from orderdesk.models.user import UserStatus
from orderdesk.repositories import OrderRepository, UserRepository
from orderdesk.repositories.base import storage_errors


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_create_and_find(self, db_session, make_user):
        repo = UserRepository(db_session)
        user = make_user(email="ann@x.com")
        await repo.create(user)

        found = await repo.find_by_id(user.id)
        assert found.email == "ann@x.com"
        assert await repo.exists(user.id) is True
        assert (await repo.find_by_email("ann@x.com")).id == user.id

    @pytest.mark.asyncio
    async def test_missing_rows_raise_not_found(self, db_session):
        repo = UserRepository(db_session)
        with pytest.raises(RecordNotFoundError):
            await repo.find_by_id("missing")
        with pytest.raises(RecordNotFoundError):
            await repo.find_by_email("nobody@x.com")
        with pytest.raises(RecordNotFoundError):
            await repo.delete("missing")
        assert await repo.exists("missing") is False

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_sensitive(self, db_session, make_user):
        repo = UserRepository(db_session)
        await repo.create(make_user(email="a@x.com"))
        with pytest.raises(RecordNotFoundError):
            await repo.find_by_email("A@x.com")

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_conflict(self, db_session, make_user):
        repo = UserRepository(db_session)
        await repo.create(make_user(email="dup@x.com"))
        with pytest.raises(RecordConflictError):
            await repo.create(make_user(email="dup@x.com"))

    @pytest.mark.asyncio
    async def test_update_writes_fields_and_timestamp(self, db_session, make_user):
        repo = UserRepository(db_session)
        past = datetime.now(timezone.utc) - timedelta(days=1)
        user = make_user(email="old@x.com", created_at=past, updated_at=past)
        await repo.create(user)

        user.name = "Renamed"
        user.status = int(UserStatus.INACTIVE)
        await repo.update(user)

        assert user.updated_at > past
        found = await repo.find_by_id(user.id)
        assert found.name == "Renamed"
        assert found.status == 0
        assert found.email == "old@x.com"

    @pytest.mark.asyncio
    async def test_update_of_unknown_row_raises_not_found(self, db_session, make_user):
        repo = UserRepository(db_session)
        with pytest.raises(RecordNotFoundError):
            await repo.update(make_user())

    @pytest.mark.asyncio
    async def test_delete_removes_row(self, db_session, make_user):
        repo = UserRepository(db_session)
        user = make_user()
        await repo.create(user)
        await repo.delete(user.id)
        assert await repo.exists(user.id) is False

    @pytest.mark.asyncio
    async def test_filtered_listing_pages_newest_first(self, db_session, make_user):
        repo = UserRepository(db_session)
        base = datetime.now(timezone.utc)
        for i in range(5):
            await repo.create(
                make_user(
                    name=f"member {i}",
                    email=f"m{i}@x.com",
                    created_at=base + timedelta(seconds=i),
                )
            )
        await repo.create(make_user(name="outsider", email="o@y.com"))

        rows, total = await repo.find_all_with_filters(name="member", page=1, limit=2)
        assert total == 5
        assert [user.name for user in rows] == ["member 4", "member 3"]

        rows, total = await repo.find_all_with_filters(email="@y.com", page=1, limit=20)
        assert total == 1
        assert rows[0].name == "outsider"

    @pytest.mark.asyncio
    async def test_page_past_the_end_is_empty(self, db_session, make_user):
        repo = UserRepository(db_session)
        for i in range(3):
            await repo.create(make_user(email=f"p{i}@x.com"))

        rows, total = await repo.find_all_with_filters(page=5, limit=2)
        assert rows == []
        assert total == 3


class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_create_round_trips_amount(self, db_session, make_order):
        repo = OrderRepository(db_session)
        order = make_order(amount=Decimal("12.50"))
        await repo.create(order)

        found = await repo.find_by_id(order.id)
        assert found.amount == Decimal("12.50")
        assert found.status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_find_by_user_id(self, db_session, make_order):
        repo = OrderRepository(db_session)
        for _ in range(3):
            await repo.create(make_order(user_id="u1"))
        await repo.create(make_order(user_id="u2"))

        rows, total = await repo.find_by_user_id("u1", page=1, limit=10)
        assert total == 3
        assert {order.user_id for order in rows} == {"u1"}

    @pytest.mark.asyncio
    async def test_filters_combine(self, db_session, make_order):
        repo = OrderRepository(db_session)
        await repo.create(make_order(user_id="u1", product_name="Blue Widget"))
        await repo.create(
            make_order(user_id="u1", product_name="Red Widget", status=int(OrderStatus.COMPLETED))
        )
        await repo.create(make_order(user_id="u2", product_name="Widget"))

        rows, total = await repo.find_all_with_filters(
            user_id="u1", product_name="widget", status=int(OrderStatus.COMPLETED)
        )
        assert total == 1
        assert rows[0].product_name == "Red Widget"

        _, total = await repo.find_all_with_filters(user_id="", product_name="WIDGET")
        assert total == 3


class TestTransactions:
    @pytest.mark.asyncio
    async def test_scoped_repository_commits(self, session_factory, make_order):
        order = make_order()
        async with session_factory() as session:
            repo = OrderRepository(session)
            async with transaction(session) as tx:
                scoped = repo.with_transaction(tx)
                assert isinstance(scoped, OrderRepository)
                await scoped.create(order)

        async with session_factory() as other:
            assert await OrderRepository(other).exists(order.id) is True

    @pytest.mark.asyncio
    async def test_failed_block_rolls_back(self, session_factory, make_order):
        order = make_order()
        async with session_factory() as session:
            with pytest.raises(RuntimeError):
                async with transaction(session) as tx:
                    await OrderRepository(tx).create(order)
                    raise RuntimeError("boom")

        async with session_factory() as other:
            assert await OrderRepository(other).exists(order.id) is False

    @pytest.mark.asyncio
    async def test_joins_an_open_transaction(self, db_session, make_order):
        await OrderRepository(db_session).exists("warm-up")
        assert db_session.in_transaction()

        order = make_order()
        async with transaction(db_session) as tx:
            await OrderRepository(tx).create(order)

        assert db_session.in_transaction()
        assert await OrderRepository(db_session).exists(order.id) is True


def test_storage_errors_wraps_driver_failures():
    with pytest.raises(RepositoryError) as info:
        with storage_errors("lookup"):
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))
    assert not isinstance(info.value, (RecordNotFoundError, RecordConflictError))
