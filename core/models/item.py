"""Catalog item domain models.

Prices are Decimal with two places of precision. An item's price is copied
onto a job item when it is added to a job, so later catalog edits never
change existing jobs.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from core.errors import InvalidFieldError
from utils.timezone import now_utc


def validate_item_fields(name: str, unit: str, unit_price: Decimal) -> None:
    """Raise InvalidFieldError unless name/unit are set and price is non-negative."""
    if not name or not name.strip():
        raise InvalidFieldError("item name is required")
    if not unit or not unit.strip():
        raise InvalidFieldError("unit is required")
    if unit_price < 0:
        raise InvalidFieldError("unit price must not be negative")


class ItemCreate(BaseModel):
    """Data required to create a catalog item."""

    name: str = Field(..., max_length=255)
    nickname: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=1000)
    unit: str = Field(..., max_length=50)
    unit_price: Decimal
    category: str | None = Field(None, max_length=100)


class ItemUpdate(BaseModel):
    """Fields that can be updated on an item. All optional."""

    name: str | None = Field(None, max_length=255)
    nickname: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=1000)
    unit: str | None = Field(None, max_length=50)
    unit_price: Decimal | None = None
    category: str | None = Field(None, max_length=100)


class Item(BaseModel):
    """Full catalog item as stored."""

    id: UUID
    name: str
    nickname: str | None = None
    description: str | None = None
    unit: str
    unit_price: Decimal
    category: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def new(cls, data: ItemCreate) -> "Item":
        """Build a validated item with a fresh id and both timestamps set."""
        validate_item_fields(data.name, data.unit, data.unit_price)
        now = now_utc()
        return cls(
            id=uuid4(),
            name=data.name,
            nickname=data.nickname,
            description=data.description,
            unit=data.unit,
            unit_price=data.unit_price,
            category=data.category,
            created_at=now,
            updated_at=now,
        )

    def apply_update(self, data: ItemUpdate) -> "Item":
        """
        Return a copy with the update applied.

        The merged record is validated first; on failure nothing changes.

        Raises:
            InvalidFieldError: If the merged record is invalid
        """
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        merged = {**self.model_dump(), **updates}
        validate_item_fields(merged["name"], merged["unit"], merged["unit_price"])

        merged["updated_at"] = now_utc()
        return Item(**merged)
