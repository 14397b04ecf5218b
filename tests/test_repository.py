"""
Storage gateway tests against an in-memory SQLite database.

Tests cover:
- Create/get round trip and the wire representation of dates
- Update and delete semantics (no existence checks at this layer)
- ListByUser and Total, including the Total statement shape
- StorageError on database failures, with the detail logged only
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest
import structlog
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import OperationalError
from structlog.testing import capture_logs

from subscription_service.core.errors import GENERIC_ERROR_DETAIL, StorageError
from subscription_service.models.subscription import Subscription
from subscription_service.repositories.subscriptions import (
    SubscriptionRepository,
    build_total_statement,
)


def make_sub(**overrides) -> Subscription:
    values = dict(
        service_name="Test Service",
        price=555,
        user_id=str(uuid.uuid4()),
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 31),
        created_at=datetime.now(timezone.utc),
    )
    values.update(overrides)
    return Subscription(**values)


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


class TestCreateAndGet:

    @pytest.mark.asyncio
    async def test_create_populates_id(self, repository):
        created = await repository.create(make_sub())
        assert isinstance(created.id, uuid.UUID)

    @pytest.mark.asyncio
    async def test_create_keeps_caller_id(self, repository):
        sub_id = uuid.uuid4()
        created = await repository.create(make_sub(id=sub_id))
        assert created.id == sub_id

    @pytest.mark.asyncio
    async def test_round_trip(self, repository):
        created = await repository.create(make_sub())
        fetched = await repository.get_by_id(created.id)
        assert fetched is not None
        assert fetched.model_dump(exclude={"created_at"}) == created.model_dump(exclude={"created_at"})
        assert fetched.start_date == "2026-01-01"
        assert fetched.end_date == "2026-01-31"

    @pytest.mark.asyncio
    async def test_open_ended_reads_as_empty_string(self, repository):
        created = await repository.create(make_sub(end_date=None))
        fetched = await repository.get_by_id(created.id)
        assert fetched.end_date == ""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, repository):
        assert await repository.get_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_duplicate_id_is_storage_error(self, repository):
        sub_id = uuid.uuid4()
        await repository.create(make_sub(id=sub_id))
        with pytest.raises(StorageError):
            await repository.create(make_sub(id=sub_id))


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_update_persists_changes(self, repository):
        created = await repository.create(make_sub())
        await repository.update(
            make_sub(
                id=created.id,
                user_id=created.user_id,
                service_name="Music TestService",
                price=777,
                end_date=None,
            )
        )
        fetched = await repository.get_by_id(created.id)
        assert fetched.price == 777
        assert fetched.service_name == "Music TestService"
        assert fetched.end_date == ""

    @pytest.mark.asyncio
    async def test_update_missing_row_is_silent(self, repository):
        await repository.update(make_sub(id=uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_delete(self, repository):
        created = await repository.create(make_sub())
        await repository.delete(created.id)
        assert await repository.get_by_id(created.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_an_error(self, repository):
        await repository.delete(uuid.uuid4())


class TestListByUser:

    @pytest.mark.asyncio
    async def test_lists_only_that_user(self, repository):
        user_id = str(uuid.uuid4())
        for i in range(3):
            await repository.create(make_sub(user_id=user_id, service_name=f"Service {i + 1}", price=100 + i * 10))
        await repository.create(make_sub())

        subs = await repository.list_by_user(user_id)
        assert len(subs) == 3
        assert {s.service_name for s in subs} == {"Service 1", "Service 2", "Service 3"}

    @pytest.mark.asyncio
    async def test_unknown_user_is_empty(self, repository):
        assert await repository.list_by_user("nobody") == []


# ---------------------------------------------------------------------------
# Total
# ---------------------------------------------------------------------------


class TestTotal:

    @pytest.mark.asyncio
    async def test_sums_matching_rows(self, repository):
        user_id = str(uuid.uuid4())
        for price in (100, 200, 300):
            await repository.create(make_sub(user_id=user_id, service_name="ServiceTotalTest", price=price))

        total = await repository.total(user_id, "ServiceTotalTest", date(2026, 1, 1), date(2026, 12, 31))
        assert total == 600

    @pytest.mark.asyncio
    async def test_range_is_inclusive_and_narrows(self, repository):
        user_id = str(uuid.uuid4())
        await repository.create(make_sub(user_id=user_id, price=100, start_date=date(2026, 1, 1)))
        await repository.create(make_sub(user_id=user_id, price=200, start_date=date(2026, 2, 1)))
        await repository.create(make_sub(user_id=user_id, price=300, start_date=date(2026, 3, 1)))

        assert await repository.total(user_id, None, date(2026, 1, 1), date(2026, 3, 1)) == 600
        assert await repository.total(user_id, None, date(2026, 1, 1), date(2026, 2, 28)) == 300
        assert await repository.total(user_id, None, date(2026, 2, 1), date(2026, 2, 1)) == 200

    @pytest.mark.asyncio
    async def test_filters_by_service_name(self, repository):
        user_id = str(uuid.uuid4())
        await repository.create(make_sub(user_id=user_id, service_name="A", price=100))
        await repository.create(make_sub(user_id=user_id, service_name="B", price=250))

        assert await repository.total(user_id, "B", date.min, date(2026, 12, 31)) == 250
        assert await repository.total(None, "A", date.min, date(2026, 12, 31)) == 100

    @pytest.mark.asyncio
    async def test_no_match_is_zero(self, repository):
        assert await repository.total("nobody", None, date.min, date(2026, 12, 31)) == 0


class TestTotalStatement:
    """The optional filters always compile in the same order."""

    @staticmethod
    def _where(stmt) -> str:
        sql = str(stmt.compile(dialect=sqlite.dialect()))
        return sql.split("WHERE", 1)[1]

    def test_range_only(self):
        where = self._where(build_total_statement(date(2026, 1, 1), date(2026, 2, 1)))
        assert where.count("?") == 2
        assert "user_id" not in where
        assert "service_name" not in where

    def test_user_clause_precedes_service_clause(self):
        where = self._where(
            build_total_statement(date(2026, 1, 1), date(2026, 2, 1), user_id="u1", service_name="Music")
        )
        assert where.count("?") == 4
        assert where.index("start_date") < where.index("user_id") < where.index("service_name")

    def test_same_filters_same_shape(self):
        a = self._where(build_total_statement(date(2026, 1, 1), date(2026, 2, 1), service_name="A"))
        b = self._where(build_total_statement(date(2025, 1, 1), date(2025, 2, 1), service_name="B"))
        assert a == b


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class _FailingSession:
    async def __aenter__(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    async def __aexit__(self, *exc):
        return False


class TestStorageErrors:

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_raised_generic(self):
        repo = SubscriptionRepository(lambda: _FailingSession(), structlog.get_logger())
        with capture_logs() as logs:
            with pytest.raises(StorageError) as exc_info:
                await repo.list_by_user("u1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == GENERIC_ERROR_DETAIL
        assert "connection refused" not in exc_info.value.detail
        errors = [entry for entry in logs if entry["event"] == "storage.error"]
        assert errors and "connection refused" in errors[0]["error"]
        assert errors[0]["operation"] == "list_by_user"
