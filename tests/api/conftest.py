"""API test fixtures: TestClient over in-memory services, mocked storage and ledger."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import create_app


# =============================================================================
# EXTERNAL SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def storage():
    from clients.blob_storage_client import BlobStorageClient

    storage = Mock(spec=BlobStorageClient)
    storage.upload.side_effect = lambda content, content_type, path: f"https://blob.example.com/photos/{path}"
    storage.delete_prefix.return_value = 0
    return storage


@pytest.fixture
def ledger():
    from clients.ledger_client import LedgerClient, LedgerCustomer, LedgerInvoice, LedgerProduct

    ledger = Mock(spec=LedgerClient)
    ledger.find_customer_by_name.return_value = LedgerCustomer(id="C-77", name="Skyview")
    ledger.list_products.return_value = [LedgerProduct(id="P-OUT", name="Outlet")]
    ledger.find_default_income_account.return_value = "ACC-SALES"
    ledger.create_product.side_effect = lambda name, account: LedgerProduct(id=f"P-{name}", name=name)
    ledger.create_invoice.return_value = LedgerInvoice(
        id="INV-1", invoice_number="1042", view_url="https://ledger.example.com/inv/1"
    )
    return ledger


@pytest.fixture
def photo_service(job_repo, storage, audit):
    from core.services.photo_service import PhotoService
    return PhotoService(job_repo, storage, audit)


@pytest.fixture
def billing_service(job_service, item_repo, customer_repo, ledger):
    from core.services.billing_service import BillingService
    return BillingService(job_service, item_repo, customer_repo, ledger)


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services(
    catalog_service,
    customer_service,
    company_service,
    template_service,
    job_service,
    photo_service,
    billing_service,
):
    job_service.photos = photo_service
    return {
        "catalog": catalog_service,
        "customer": customer_service,
        "company": company_service,
        "template": template_service,
        "job": job_service,
        "photo": photo_service,
        "billing": billing_service,
    }


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def bare_client(services):
    """Client for an app with no storage or ledger configured."""
    services = {**services, "photo": None, "billing": None}
    return TestClient(create_app(services), raise_server_exceptions=False)
