"""Core domain models."""

from core.models.item import Item, ItemCreate, ItemUpdate, validate_item_fields
from core.models.customer import Customer, CustomerCreate, CustomerUpdate
from core.models.company import Company, CompanyUpdate, COMPANY_ID
from core.models.template import (
    JobTemplate, TemplateCreate, TemplateUpdate,
    TemplateItem, TemplateItemCreate,
    TemplatePhase, TemplatePhaseCreate,
)
from core.models.job import (
    Job, JobCreate, JobUpdate, JobStatus, parse_job_status,
    JobItem, JobItemAdd, CustomJobItemCreate,
    JobPhoto,
)
from core.models.billing import LedgerLineItem, InvoicePreparation, SubmittedInvoice

__all__ = [
    # Item
    "Item", "ItemCreate", "ItemUpdate", "validate_item_fields",
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate",
    # Company
    "Company", "CompanyUpdate", "COMPANY_ID",
    # Template
    "JobTemplate", "TemplateCreate", "TemplateUpdate",
    "TemplateItem", "TemplateItemCreate",
    "TemplatePhase", "TemplatePhaseCreate",
    # Job
    "Job", "JobCreate", "JobUpdate", "JobStatus", "parse_job_status",
    "JobItem", "JobItemAdd", "CustomJobItemCreate",
    "JobPhoto",
    # Billing
    "LedgerLineItem", "InvoicePreparation", "SubmittedInvoice",
]
