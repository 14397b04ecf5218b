from typing import Optional
from uuid import UUID
from datetime import datetime

from pydantic import BaseModel, Field


class SubscriptionCreate(BaseModel):
    id: Optional[UUID] = None
    service_name: str = ""
    price: int
    user_id: str = ""
    start_date: str = ""
    end_date: Optional[str] = None
    created_at: Optional[datetime] = None  # accepted, always replaced on create

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "service_name": "Music",
                    "price": 500,
                    "user_id": "60601fee-2bf1-4721-ae6f-7636e79a0cba",
                    "start_date": "2026-02",
                }
            ]
        }
    }


class SubscriptionUpdate(BaseModel):
    """Partial update; only fields the client sent are applied.

    Presence is read from ``model_fields_set``, so ``{"price": 0}`` is a real
    update, an empty string leaves a text or date field unchanged, and an
    explicit ``"end_date": null`` clears the end date.
    """

    service_name: Optional[str] = None
    price: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def is_present(self, field: str) -> bool:
        return field in self.model_fields_set


class SubscriptionRead(BaseModel):
    id: UUID
    service_name: str
    price: int
    user_id: str
    start_date: str
    end_date: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class SubscriptionTotal(BaseModel):
    total: int = Field(0, ge=0)
