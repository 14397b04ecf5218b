"""
Subscription service: validation, normalization and the Total query defaults.

Handles:
- Create with forced created_at and id assignment
- Merge-on-present partial updates with explicit field presence
- Existence pre-checks before update and delete
- Date window defaults for the Total aggregate
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Callable, Optional

from subscription_service.core.dates import parse_date, parse_optional_date
from subscription_service.core.errors import ClientInputError, NotFoundError
from subscription_service.models.base import utcnow
from subscription_service.models.subscription import Subscription
from subscription_service.repositories.subscriptions import (
    SubscriptionRepository,
    to_read,
)
from subscription_service.schemas.subscriptions import (
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUpdate,
)

# Lower bound of a Total query when the caller gives no 'from'
EARLIEST_DATE = date.min

# Largest value the INTEGER price column holds
MAX_PRICE = 2**31 - 1


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _parse_field(name: str, value: Optional[str], required: bool = False) -> Optional[date]:
    if required and _blank(value):
        raise ClientInputError(f"{name} is required")
    try:
        return parse_optional_date(value)
    except ValueError:
        raise ClientInputError(f"Invalid {name}, expected YYYY-MM-DD or YYYY-MM")


def _check_window(start_date: date, end_date: Optional[date]) -> None:
    if end_date is not None and end_date < start_date:
        raise ClientInputError("end_date must not be earlier than start_date")


def _check_price(price: int) -> None:
    if price < 0:
        raise ClientInputError("price must be greater than or equal to 0")
    if price > MAX_PRICE:
        raise ClientInputError(f"price must not exceed {MAX_PRICE}")


def _parse_bound(name: str, value: Optional[str], default: date) -> date:
    if _blank(value):
        return default
    try:
        return parse_date(value)
    except ValueError:
        raise ClientInputError(f"Invalid '{name}' date")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SubscriptionService:
    """Core subscription logic on top of the storage gateway."""

    def __init__(
        self,
        repository: SubscriptionRepository,
        log,
        clock: Callable = utcnow,
    ):
        self._repo = repository
        self._log = log.bind(component="subscriptions")
        self._clock = clock

    async def create(self, payload: SubscriptionCreate) -> SubscriptionRead:
        if _blank(payload.service_name):
            raise ClientInputError("service_name is required")
        _check_price(payload.price)
        if _blank(payload.user_id):
            raise ClientInputError("user_id is required")
        start_date = _parse_field("start_date", payload.start_date, required=True)
        end_date = _parse_field("end_date", payload.end_date)
        _check_window(start_date, end_date)

        sub = Subscription(
            id=payload.id or uuid.uuid4(),
            service_name=payload.service_name,
            price=payload.price,
            user_id=payload.user_id,
            start_date=start_date,
            end_date=end_date,
            created_at=self._clock(),
        )
        created = await self._repo.create(sub)
        self._log.info(
            "subscription.created",
            subscription_id=str(created.id),
            user_id=created.user_id,
        )
        return created

    async def get(self, subscription_id: uuid.UUID) -> SubscriptionRead:
        sub = await self._repo.get_by_id(subscription_id)
        if sub is None:
            raise NotFoundError()
        return sub

    async def update(
        self, subscription_id: uuid.UUID, patch: SubscriptionUpdate
    ) -> SubscriptionRead:
        existing = await self.get(subscription_id)

        service_name = existing.service_name
        if patch.service_name:
            if _blank(patch.service_name):
                raise ClientInputError("service_name must not be empty")
            service_name = patch.service_name

        price = existing.price
        if patch.is_present("price") and patch.price is not None:
            _check_price(patch.price)
            price = patch.price

        # "" counts as absent for the date fields; only an explicit null clears end_date
        start_date = parse_date(existing.start_date)
        if patch.start_date:
            start_date = _parse_field("start_date", patch.start_date, required=True)

        end_date = parse_optional_date(existing.end_date)
        if patch.end_date:
            end_date = _parse_field("end_date", patch.end_date)
        elif patch.is_present("end_date") and patch.end_date is None:
            end_date = None

        _check_window(start_date, end_date)

        merged = Subscription(
            id=existing.id,
            service_name=service_name,
            price=price,
            user_id=existing.user_id,
            start_date=start_date,
            end_date=end_date,
            created_at=existing.created_at,
        )
        await self._repo.update(merged)
        self._log.info(
            "subscription.updated",
            subscription_id=str(existing.id),
            fields=sorted(patch.model_fields_set),
        )
        return to_read(merged)

    async def delete(self, subscription_id: uuid.UUID) -> None:
        if await self._repo.get_by_id(subscription_id) is None:
            self._log.warning("subscription.delete_missing", subscription_id=str(subscription_id))
            raise NotFoundError()
        await self._repo.delete(subscription_id)
        self._log.info("subscription.deleted", subscription_id=str(subscription_id))

    async def list_by_user(self, user_id: Optional[str]) -> list[SubscriptionRead]:
        if _blank(user_id):
            raise ClientInputError("user_id parameter is required")
        return await self._repo.list_by_user(user_id)

    async def total(
        self,
        user_id: Optional[str] = None,
        service_name: Optional[str] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
    ) -> int:
        """Sum prices of subscriptions starting within [from_, to].

        A missing lower bound is unbounded; a missing upper bound is today,
        so subscriptions starting in the future are not counted.
        """
        start = _parse_bound("from", from_, EARLIEST_DATE)
        end = _parse_bound("to", to, self._clock().date())
        return await self._repo.total(
            None if _blank(user_id) else user_id,
            None if _blank(service_name) else service_name,
            start,
            end,
        )
