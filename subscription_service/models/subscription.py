"""Subscription model."""

from datetime import date
from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Subscription(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"

    service_name: str = Field(nullable=False)
    price: int = Field(nullable=False)
    user_id: str = Field(nullable=False, index=True)
    start_date: date = Field(nullable=False)
    end_date: Optional[date] = None  # open-ended when NULL
