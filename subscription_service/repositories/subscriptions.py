"""
Storage gateway for the ``subscriptions`` table.

Every operation opens its own session, runs one statement and commits
writes immediately. Rows are handed back in wire form (``SubscriptionRead``):
dates as ``YYYY-MM-DD`` strings and a NULL ``end_date`` as ``""``. Absence is
reported as ``None``; database failures are logged and raised as
``StorageError``.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from subscription_service.core.dates import format_date
from subscription_service.core.errors import StorageError
from subscription_service.models.subscription import Subscription
from subscription_service.schemas.subscriptions import SubscriptionRead

# Optional Total filters, applied in this order whenever a value is given.
TOTAL_FILTERS = (
    ("user_id", Subscription.user_id),
    ("service_name", Subscription.service_name),
)


def to_read(row: Subscription) -> SubscriptionRead:
    """Convert a stored row to its wire representation."""
    return SubscriptionRead(
        id=row.id,
        service_name=row.service_name,
        price=row.price,
        user_id=row.user_id,
        start_date=format_date(row.start_date),
        end_date=format_date(row.end_date),
        created_at=row.created_at,
    )


def build_total_statement(
    from_: date,
    to: date,
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
):
    """SELECT the price sum over an inclusive start_date range plus filters."""
    stmt = select(func.coalesce(func.sum(Subscription.price), 0)).where(
        Subscription.start_date >= from_,
        Subscription.start_date <= to,
    )
    values = {"user_id": user_id, "service_name": service_name}
    for name, column in TOTAL_FILTERS:
        if values[name] is not None:
            stmt = stmt.where(column == values[name])
    return stmt


class SubscriptionRepository:
    """Single-table persistence for subscriptions."""

    def __init__(self, session_factory: sessionmaker, log):
        self._session_factory = session_factory
        self._log = log.bind(component="storage")

    def _failed(self, operation: str, exc: SQLAlchemyError, **context) -> StorageError:
        self._log.error("storage.error", operation=operation, error=str(exc), **context)
        return StorageError(operation)

    async def create(self, sub: Subscription) -> SubscriptionRead:
        if sub.id is None:
            sub.id = uuid.uuid4()
        try:
            async with self._session_factory() as session:
                session.add(sub)
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._failed("create", exc, subscription_id=str(sub.id)) from exc
        return to_read(sub)

    async def get_by_id(self, subscription_id: uuid.UUID) -> Optional[SubscriptionRead]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Subscription, subscription_id)
        except SQLAlchemyError as exc:
            raise self._failed("get_by_id", exc, subscription_id=str(subscription_id)) from exc
        if row is None:
            return None
        return to_read(row)

    async def update(self, sub: Subscription) -> None:
        """Overwrite the mutable columns; a missing row is not detected."""
        stmt = (
            update(Subscription)
            .where(Subscription.id == sub.id)
            .values(
                service_name=sub.service_name,
                price=sub.price,
                start_date=sub.start_date,
                end_date=sub.end_date,
            )
        )
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._failed("update", exc, subscription_id=str(sub.id)) from exc

    async def delete(self, subscription_id: uuid.UUID) -> None:
        """Delete by id; deleting zero rows is not an error."""
        stmt = delete(Subscription).where(Subscription.id == subscription_id)
        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._failed("delete", exc, subscription_id=str(subscription_id)) from exc

    async def list_by_user(self, user_id: str) -> list[SubscriptionRead]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Subscription).where(Subscription.user_id == user_id)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise self._failed("list_by_user", exc, user_id=user_id) from exc
        return [to_read(row) for row in rows]

    async def total(
        self,
        user_id: Optional[str],
        service_name: Optional[str],
        from_: date,
        to: date,
    ) -> int:
        stmt = build_total_statement(from_, to, user_id=user_id, service_name=service_name)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                total = result.scalar_one()
        except SQLAlchemyError as exc:
            raise self._failed("total", exc, user_id=user_id, service_name=service_name) from exc
        return int(total or 0)
