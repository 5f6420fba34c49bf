"""Customer domain models."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, EmailStr

from core.errors import InvalidFieldError
from utils.timezone import now_utc


class CustomerCreate(BaseModel):
    """Data required to create a customer."""

    name: str = Field(..., max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)


class CustomerUpdate(BaseModel):
    """Data that can be updated on a customer. All fields optional."""

    name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: UUID
    name: str
    email: str
    phone: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def new(cls, data: CustomerCreate) -> "Customer":
        if not data.name.strip():
            raise InvalidFieldError("customer name is required")
        now = now_utc()
        return cls(
            id=uuid4(),
            name=data.name,
            email=data.email,
            phone=data.phone,
            created_at=now,
            updated_at=now,
        )

    def apply_update(self, data: CustomerUpdate) -> "Customer":
        """Return a validated copy with the update applied."""
        updates = data.model_dump(exclude_none=True)
        if "name" in updates and not updates["name"].strip():
            raise InvalidFieldError("customer name is required")

        return self.model_copy(update={**updates, "updated_at": now_utc()})
