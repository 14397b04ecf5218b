"""
API router.

Subscription endpoints live under /subscriptions.
"""

from fastapi import APIRouter

from . import subscriptions

router = APIRouter()

router.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])
