"""Company settings domain model.

There is exactly one company row, stored under a fixed id.
"""

from datetime import datetime

from pydantic import BaseModel, Field, EmailStr

from core.errors import InvalidFieldError
from utils.timezone import now_utc

COMPANY_ID = "default"


class CompanyUpdate(BaseModel):
    """Company settings update. Empty strings leave a field unchanged."""

    name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=50)
    zip: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=50)
    license: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=255)
    logo: str | None = None
    remove_logo: bool = False


class Company(BaseModel):
    """Company settings as stored."""

    id: str = COMPANY_ID
    name: str
    email: str
    logo: str | None = None
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    phone: str = ""
    license: str = ""
    website: str = ""
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def new(cls, data: CompanyUpdate) -> "Company":
        """First write of the settings row. Name and email are required."""
        if not data.name or not data.email:
            raise InvalidFieldError("company name and email are required")
        now = now_utc()
        company = cls(name=data.name, email=data.email, created_at=now, updated_at=now)
        return company.apply_update(data)

    def apply_update(self, data: CompanyUpdate) -> "Company":
        """Return a copy with every non-empty field of the update applied."""
        updates = {
            field: value
            for field, value in data.model_dump(exclude={"remove_logo"}).items()
            if value
        }
        if data.remove_logo:
            updates["logo"] = None

        return self.model_copy(update={**updates, "updated_at": now_utc()})
