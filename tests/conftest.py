"""Shared test fixtures: in-memory repositories and wired services, no DB needed."""

from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()


# =============================================================================
# IN-MEMORY REPOSITORIES
# =============================================================================


class InMemoryItemRepository:
    """Same surface as ItemRepository, backed by a dict."""

    def __init__(self):
        self.rows = {}

    def create(self, item):
        self.rows[item.id] = item.model_copy(deep=True)
        return item.model_copy(deep=True)

    def get_by_id(self, item_id):
        row = self.rows.get(item_id)
        return row.model_copy(deep=True) if row else None

    def list(self, category=None, limit=100, offset=0):
        rows = [r for r in self.rows.values() if category is None or r.category == category]
        rows.sort(key=lambda r: r.name)
        return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]

    def update(self, item):
        self.rows[item.id] = item.model_copy(deep=True)
        return item.model_copy(deep=True)

    def delete(self, item_id):
        return self.rows.pop(item_id, None) is not None


class InMemoryCustomerRepository(InMemoryItemRepository):
    def list(self, limit=100, offset=0):
        rows = sorted(self.rows.values(), key=lambda r: r.name)
        return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]


class InMemoryCompanyRepository:
    def __init__(self):
        self.row = None

    def get(self):
        return self.row.model_copy(deep=True) if self.row else None

    def save(self, company):
        self.row = company.model_copy(deep=True)
        return company.model_copy(deep=True)


class InMemoryTemplateRepository:
    """Same surface as TemplateRepository. Writes happen only through its methods."""

    def __init__(self):
        self.rows = {}
        self.phase_replacements = 0

    def create(self, template):
        self.rows[template.id] = template.model_copy(deep=True)

    def get_by_id(self, template_id):
        row = self.rows.get(template_id)
        return row.model_copy(deep=True) if row else None

    def list(self, active_only=False, limit=100, offset=0):
        rows = [r for r in self.rows.values() if r.is_active or not active_only]
        rows.sort(key=lambda r: r.name)
        return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]

    def update(self, template, replace_phases=False):
        stored = self.rows[template.id]
        stored.name = template.name
        stored.description = template.description
        stored.is_active = template.is_active
        stored.updated_at = template.updated_at
        if replace_phases:
            self.phase_replacements += 1
            stored.phases = [p.model_copy() for p in template.phases]

    def add_item(self, item):
        self.rows[item.template_id].items.append(item.model_copy())

    def update_item(self, item):
        stored = self.rows[item.template_id]
        stored.items = [item.model_copy() if i.id == item.id else i for i in stored.items]

    def remove_items(self, template_id, item_id):
        stored = self.rows[template_id]
        before = len(stored.items)
        stored.items = [i for i in stored.items if i.item_id != item_id]
        return before - len(stored.items)

    def delete(self, template_id):
        return self.rows.pop(template_id, None) is not None


class InMemoryJobRepository:
    """Same surface as JobRepository. Job rows, items and photos are written separately."""

    def __init__(self):
        self.rows = {}

    def create(self, job):
        stored = job.model_copy(deep=True)
        stored.items = []
        self.rows[job.id] = stored
        for item in job.items:
            self.add_item(item)

    def get_by_id(self, job_id):
        row = self.rows.get(job_id)
        return row.model_copy(deep=True) if row else None

    def list(self, status=None, customer_id=None, limit=100, offset=0):
        rows = [
            r for r in self.rows.values()
            if (status is None or r.status == status)
            and (customer_id is None or r.customer_id == customer_id)
        ]
        rows.sort(key=lambda r: r.scheduled_date, reverse=True)
        return [r.model_copy(deep=True) for r in rows[offset:offset + limit]]

    def update(self, job):
        stored = self.rows[job.id]
        self.rows[job.id] = job.model_copy(
            deep=True, update={"items": stored.items, "photos": stored.photos}
        )

    def delete(self, job_id):
        return self.rows.pop(job_id, None) is not None

    def add_item(self, item):
        self.rows[item.job_id].items.append(item.model_copy())

    def update_item(self, item):
        stored = self.rows[item.job_id]
        stored.items = [item.model_copy() if i.id == item.id else i for i in stored.items]

    def remove_item(self, job_item_id):
        for stored in self.rows.values():
            stored.items = [i for i in stored.items if i.id != job_item_id]

    def add_photo(self, photo):
        self.rows[photo.job_id].photos.append(photo.model_copy())

    def remove_photo(self, photo_id):
        for stored in self.rows.values():
            stored.photos = [p for p in stored.photos if p.id != photo_id]


# =============================================================================
# REPOSITORY & SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def audit():
    from core.audit import AuditLogger
    return Mock(spec=AuditLogger)


@pytest.fixture
def item_repo():
    return InMemoryItemRepository()


@pytest.fixture
def customer_repo():
    return InMemoryCustomerRepository()


@pytest.fixture
def company_repo():
    return InMemoryCompanyRepository()


@pytest.fixture
def template_repo():
    return InMemoryTemplateRepository()


@pytest.fixture
def job_repo():
    return InMemoryJobRepository()


@pytest.fixture
def catalog_service(item_repo, audit):
    from core.services.catalog_service import CatalogService
    return CatalogService(item_repo, audit)


@pytest.fixture
def customer_service(customer_repo, audit):
    from core.services.customer_service import CustomerService
    return CustomerService(customer_repo, audit)


@pytest.fixture
def company_service(company_repo, audit):
    from core.services.company_service import CompanyService
    return CompanyService(company_repo, audit)


@pytest.fixture
def template_service(template_repo, item_repo, audit):
    from core.services.template_service import TemplateService
    return TemplateService(template_repo, item_repo, audit)


@pytest.fixture
def job_service(job_repo, template_repo, item_repo, customer_repo, audit):
    from core.services.job_service import JobService
    return JobService(job_repo, template_repo, item_repo, customer_repo, audit)


# =============================================================================
# SAMPLE DATA
# =============================================================================


@pytest.fixture
def make_item(catalog_service):
    """Create catalog items: make_item("Outlet", "19.99")."""
    from core.models import ItemCreate

    def _make(name="Outlet", price="25.00", unit="each", description=None, category=None):
        return catalog_service.create(
            ItemCreate(
                name=name,
                unit=unit,
                unit_price=Decimal(price),
                description=description,
                category=category,
            )
        )

    return _make


@pytest.fixture
def customer(customer_service):
    from core.models import CustomerCreate
    return customer_service.create(
        CustomerCreate(name="Skyview Homes", email="office@skyview.example.com", phone="555-0100")
    )


@pytest.fixture
def template(template_service, make_item):
    """Template with three catalog items and two phases."""
    from core.models import TemplateCreate, TemplateItemCreate, TemplatePhaseCreate

    outlet = make_item("Outlet", "25.00", description="Standard duplex outlet")
    switch = make_item("Switch", "18.50", description="Single-pole switch")
    panel = make_item("Panel", "400.00", description="200A panel")

    return template_service.create(
        TemplateCreate(
            name="New Construction",
            items=[
                TemplateItemCreate(item_id=outlet.id, default_quantity=Decimal("12")),
                TemplateItemCreate(item_id=switch.id, default_quantity=Decimal("6")),
                TemplateItemCreate(item_id=panel.id, default_quantity=Decimal("1")),
            ],
            phases=[
                TemplatePhaseCreate(name="Finish", order=2),
                TemplatePhaseCreate(name="Rough-in", order=1),
            ],
        )
    )


@pytest.fixture
def job(job_service, customer, template):
    """Scheduled job created from the sample template."""
    from core.models import JobCreate
    return job_service.create_from_template(
        JobCreate(
            customer_id=customer.id,
            template_id=template.id,
            address="123 Main St, Toronto, ON",
        )
    )
