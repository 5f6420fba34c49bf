"""Behavioural configuration for the job engine, photo storage and billing."""

from decimal import Decimal

from pydantic import BaseModel, Field


class JobsConfig(BaseModel):
    """Job lifecycle settings."""

    default_schedule_offset_hours: int = Field(
        default=24,
        description="Scheduled date used when a job is created without one",
        ge=1,
    )


class StorageConfig(BaseModel):
    """Photo storage settings."""

    photo_prefix: str = Field(
        default="jobs",
        description="Top-level folder for job photos",
        min_length=1,
    )
    presign_expiry_hours: int = Field(
        default=168,  # 7 days
        description="Lifetime of the signed URL stored for each photo",
        ge=1,
        le=168,
    )
    probe_timeout_seconds: int = Field(
        default=5,
        description="Timeout for the connectivity probe",
        ge=1,
        le=30,
    )


class BillingConfig(BaseModel):
    """
    Invoice derivation settings.

    Either ledger_customer_id is set, or the customer is found in the
    ledger by ledger_customer_name (case-insensitive).
    """

    ledger_customer_id: str | None = Field(
        default=None,
        description="External customer id every invoice is billed to",
    )
    ledger_customer_name: str = Field(
        default="Skyview",
        description="Name looked up in the ledger when no customer id is configured",
        min_length=1,
    )
    permit_product_name: str = "Electrical Permit"
    permit_description: str = "Required for this project"
    permit_price: Decimal = Field(default=Decimal("250.00"), ge=0)
    custom_product_name: str = Field(
        default="Custom Work",
        description="Product every ad-hoc job item is billed under",
    )
