"""
OrderDesk Backend: User Service Unit Tests
==========================================

What:  UserService business rules against a mocked repository.
How:   The repository is an AsyncMock; sentinel errors are injected through
       side_effect, so no database is involved.

What we test:
    ✅ Create: active by default, duplicate email → EMAIL_EXISTS, lost race
    ✅ Update: only supplied fields change; email re-check only when changed
    ✅ Not-found translation for get / update / delete
    ✅ Pagination clamping and totals
"""

from unittest.mock import AsyncMock

import pytest

from orderdesk import error_codes
from orderdesk.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    RecordConflictError,
    RecordNotFoundError,
    RepositoryError,
)
from orderdesk.schemas.user import UpdateUserRequest
from orderdesk.services.user_service import UserService


class TestUserServiceCreate:
    def setup_method(self):
        self.repository = AsyncMock()
        self.service = UserService(self.repository)

    @pytest.mark.asyncio
    async def test_create_success(self, stamp_timestamps):
        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = stamp_timestamps

        result = await self.service.create(name="Ann", email="a@x.com")

        assert result.name == "Ann"
        assert result.email == "a@x.com"
        assert result.status == 1
        assert len(result.id) == 36
        self.repository.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, stamp_timestamps):
        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = stamp_timestamps

        first = await self.service.create(name="Ann", email="a@x.com")
        second = await self.service.create(name="Bob", email="b@x.com")
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, make_user):
        self.repository.find_by_email.return_value = make_user(email="a@x.com")

        with pytest.raises(ConflictError) as info:
            await self.service.create(name="Bob", email="a@x.com")

        assert info.value.code == error_codes.EMAIL_EXISTS
        assert info.value.status_code == 400
        self.repository.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_constraint_race_is_reported_as_duplicate(self):
        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = RecordConflictError()

        with pytest.raises(ConflictError) as info:
            await self.service.create(name="Ann", email="a@x.com")
        assert info.value.code == error_codes.EMAIL_EXISTS

    @pytest.mark.asyncio
    async def test_storage_failure_is_internal(self):
        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = RepositoryError("connection reset")

        with pytest.raises(InternalError) as info:
            await self.service.create(name="Ann", email="a@x.com")
        assert info.value.code == error_codes.DATABASE_ERROR
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_create_commits_before_returning(self, stamp_timestamps):
        calls = []

        def create(user):
            stamp_timestamps(user)
            calls.append("create")

        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = create
        self.repository.commit.side_effect = lambda: calls.append("commit")

        await self.service.create(name="Ann", email="a@x.com")
        assert calls == ["create", "commit"]

    @pytest.mark.asyncio
    async def test_failed_commit_is_internal(self, stamp_timestamps):
        self.repository.find_by_email.side_effect = RecordNotFoundError()
        self.repository.create.side_effect = stamp_timestamps
        self.repository.commit.side_effect = RepositoryError("disk full")

        with pytest.raises(InternalError) as info:
            await self.service.create(name="Ann", email="a@x.com")
        assert info.value.code == error_codes.DATABASE_ERROR


class TestUserServiceUpdate:
    def setup_method(self):
        self.repository = AsyncMock()
        self.service = UserService(self.repository)

    @pytest.mark.asyncio
    async def test_omitted_fields_are_untouched(self, make_user):
        user = make_user(name="Ann", email="a@x.com")
        self.repository.find_by_id.return_value = user

        result = await self.service.update(user.id, UpdateUserRequest(name="Annie"))

        assert result.name == "Annie"
        assert result.email == "a@x.com"
        assert result.status == 1
        self.repository.find_by_email.assert_not_awaited()
        self.repository.update.assert_awaited_once_with(user)

    @pytest.mark.asyncio
    async def test_explicit_null_means_not_supplied(self, make_user):
        user = make_user(name="Ann")
        self.repository.find_by_id.return_value = user

        changes = UpdateUserRequest.model_validate({"name": None, "status": 0})
        result = await self.service.update(user.id, changes)

        assert result.name == "Ann"
        assert result.status == 0

    @pytest.mark.asyncio
    async def test_same_email_skips_uniqueness_check(self, make_user):
        user = make_user(email="a@x.com")
        self.repository.find_by_id.return_value = user

        await self.service.update(user.id, UpdateUserRequest(email="a@x.com"))
        self.repository.find_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_changed_email_already_taken(self, make_user):
        user = make_user(email="a@x.com")
        self.repository.find_by_id.return_value = user
        self.repository.find_by_email.return_value = make_user(email="b@x.com")

        with pytest.raises(ConflictError) as info:
            await self.service.update(user.id, UpdateUserRequest(email="b@x.com"))

        assert info.value.code == error_codes.EMAIL_EXISTS
        self.repository.update.assert_not_awaited()
        assert user.email == "a@x.com"

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        self.repository.find_by_id.side_effect = RecordNotFoundError()

        with pytest.raises(NotFoundError) as info:
            await self.service.update("missing", UpdateUserRequest(name="x"))
        assert info.value.code == error_codes.USER_NOT_FOUND


class TestUserServiceReadDelete:
    def setup_method(self):
        self.repository = AsyncMock()
        self.service = UserService(self.repository)

    @pytest.mark.asyncio
    async def test_get_by_id(self, make_user):
        user = make_user()
        self.repository.find_by_id.return_value = user

        result = await self.service.get_by_id(user.id)
        assert result.id == user.id

    @pytest.mark.asyncio
    async def test_get_missing_user(self):
        self.repository.find_by_id.side_effect = RecordNotFoundError()

        with pytest.raises(NotFoundError) as info:
            await self.service.get_by_id("missing")
        assert info.value.code == error_codes.USER_NOT_FOUND
        assert info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_delete_missing_user(self):
        self.repository.delete.side_effect = RecordNotFoundError()

        with pytest.raises(NotFoundError) as info:
            await self.service.delete("missing")
        assert info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_exists_passes_through(self):
        self.repository.exists.return_value = False
        assert await self.service.exists("u1") is False


class TestUserServiceList:
    def setup_method(self):
        self.repository = AsyncMock()
        self.service = UserService(self.repository)

    @pytest.mark.asyncio
    async def test_paging_is_clamped(self):
        self.repository.find_all_with_filters.return_value = ([], 0)

        result = await self.service.get_all(page=0, limit=500)

        self.repository.find_all_with_filters.assert_awaited_once_with(
            name=None, email=None, page=1, limit=100
        )
        assert result.page == 1
        assert result.limit == 100
        assert result.total_pages == 0

    @pytest.mark.asyncio
    async def test_default_limit(self):
        self.repository.find_all_with_filters.return_value = ([], 0)
        result = await self.service.get_all()
        assert result.limit == 20

    @pytest.mark.asyncio
    async def test_total_pages_rounds_up(self, make_user):
        users = [make_user(email=f"u{i}@x.com") for i in range(3)]
        self.repository.find_all_with_filters.return_value = (users, 7)

        result = await self.service.get_all(name="u", page=1, limit=3)

        assert result.total == 7
        assert result.total_pages == 3
        assert [item.email for item in result.items] == ["u0@x.com", "u1@x.com", "u2@x.com"]

    @pytest.mark.asyncio
    async def test_page_beyond_total_is_empty_not_error(self):
        self.repository.find_all_with_filters.return_value = ([], 4)

        result = await self.service.get_all(page=9, limit=2)
        assert result.items == []
        assert result.total_pages == 2
