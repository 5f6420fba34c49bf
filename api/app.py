"""
Application wiring.

create_app() assembles the FastAPI app from an already-built services dict
(tests pass fakes). create_app_from_env() builds real services from Vault
secrets and is the ASGI factory for deployment, e.g.
``uvicorn api.app:create_app_from_env --factory``.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from api.catalog import create_catalog_router
from api.errors import register_error_handlers
from api.health import create_health_router
from api.jobs import create_jobs_router
from api.middleware import RequestIDMiddleware
from api.templates import create_templates_router
from clients.blob_storage_client import BlobStorageClient
from clients.ledger_client import LedgerClient
from clients.postgres_client import PostgresClient
from clients.vault_client import get_blob_storage_config, get_database_url, get_ledger_config
from core.audit import AuditLogger
from core.config import BillingConfig, JobsConfig, StorageConfig
from core.repositories.customer_repository import CompanyRepository, CustomerRepository
from core.repositories.item_repository import ItemRepository
from core.repositories.job_repository import JobRepository
from core.repositories.template_repository import TemplateRepository
from core.services.billing_service import BillingService
from core.services.catalog_service import CatalogService
from core.services.company_service import CompanyService
from core.services.customer_service import CustomerService
from core.services.job_service import JobService
from core.services.photo_service import PhotoService
from core.services.template_service import TemplateService

logger = logging.getLogger(__name__)


def create_app(services: dict) -> FastAPI:
    """FastAPI app with request ids, error handlers and every /api router."""
    app = FastAPI(title="Electrical Jobs")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_catalog_router(services), prefix="/api")
    app.include_router(create_templates_router(services), prefix="/api")
    app.include_router(create_jobs_router(services), prefix="/api")
    app.include_router(create_health_router(services), prefix="/api")

    return app


def _build_storage(config: StorageConfig) -> BlobStorageClient | None:
    try:
        blob_config = get_blob_storage_config()
    except (PermissionError, KeyError) as e:
        logger.warning(f"Blob storage not configured, photo routes disabled: {e}")
        return None
    return BlobStorageClient(
        connection_string=blob_config["connection_string"],
        container_name=blob_config["container_name"],
        presign_expiry_hours=config.presign_expiry_hours,
    )


def _build_ledger() -> tuple[LedgerClient | None, str | None]:
    try:
        ledger_config = get_ledger_config()
    except (PermissionError, KeyError) as e:
        logger.warning(f"Ledger not configured, invoicing disabled: {e}")
        return None, None
    client = LedgerClient(
        api_token=ledger_config["api_token"],
        business_id=ledger_config["business_id"],
    )
    return client, ledger_config.get("customer_id")


def build_services(
    jobs_config: JobsConfig | None = None,
    storage_config: StorageConfig | None = None,
    billing_config: BillingConfig | None = None,
) -> dict:
    """
    Build every service from Vault-held secrets.

    The database is required. Blob storage and the ledger are optional:
    when their secrets are missing the photo and invoice routes answer 503.
    """
    storage_config = storage_config or StorageConfig()
    billing_config = billing_config or BillingConfig()

    postgres = PostgresClient(get_database_url())
    audit = AuditLogger(postgres)

    items = ItemRepository(postgres)
    customers = CustomerRepository(postgres)
    templates = TemplateRepository(postgres)
    jobs = JobRepository(postgres)

    storage = _build_storage(storage_config)
    photo_svc = PhotoService(jobs, storage, audit, storage_config) if storage else None

    job_svc = JobService(jobs, templates, items, customers, audit, jobs_config, photos=photo_svc)

    services = {
        "catalog": CatalogService(items, audit),
        "customer": CustomerService(customers, audit),
        "company": CompanyService(CompanyRepository(postgres), audit),
        "template": TemplateService(templates, items, audit),
        "job": job_svc,
        "photo": photo_svc,
        "billing": None,
    }

    ledger, ledger_customer_id = _build_ledger()
    if ledger is not None:
        if ledger_customer_id and not billing_config.ledger_customer_id:
            billing_config = billing_config.model_copy(update={"ledger_customer_id": ledger_customer_id})
        services["billing"] = BillingService(job_svc, items, customers, ledger, billing_config)

    return services


def create_app_from_env() -> FastAPI:
    """Load .env, build services from Vault and return the app."""
    load_dotenv(Path(__file__).parent.parent / ".env")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return create_app(build_services())
