"""
Subscription endpoints: CRUD, list by user, total spend.

- Path ids are UUIDs; anything else is a 400.
- PUT is a partial update: only fields present in the body change.
- GET /total sums prices of subscriptions starting within [from, to];
  'from' defaults to unbounded, 'to' to today.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import sessionmaker

from subscription_service.core.database import get_session_factory
from subscription_service.core.logging import get_log
from subscription_service.repositories.subscriptions import SubscriptionRepository
from subscription_service.schemas.subscriptions import (
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionTotal,
    SubscriptionUpdate,
)
from subscription_service.services.subscriptions import SubscriptionService

router = APIRouter()


def get_subscription_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    log=Depends(get_log),
) -> SubscriptionService:
    return SubscriptionService(SubscriptionRepository(session_factory, log), log)


@router.post("", response_model=SubscriptionRead, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    sub_in: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription; id is generated when absent."""
    return await service.create(sub_in)


@router.get("", response_model=List[SubscriptionRead])
async def list_subscriptions(
    user_id: Optional[str] = None,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """List a user's subscriptions."""
    return await service.list_by_user(user_id)


@router.get("/total", response_model=SubscriptionTotal)
async def total_subscriptions(
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Total price of matching subscriptions, filtered by user/service and date range."""
    total = await service.total(user_id, service_name, from_, to)
    return SubscriptionTotal(total=total)


@router.get("/{subscription_id}", response_model=SubscriptionRead)
async def get_subscription(
    subscription_id: uuid.UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    return await service.get(subscription_id)


@router.put("/{subscription_id}", response_model=SubscriptionRead)
async def update_subscription(
    subscription_id: uuid.UUID,
    patch: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Partially update a subscription. user_id and created_at are immutable."""
    return await service.update(subscription_id, patch)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(
    subscription_id: uuid.UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    await service.delete(subscription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
