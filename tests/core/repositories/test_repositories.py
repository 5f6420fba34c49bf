"""Tests for SQL repositories against a mocked PostgresClient."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, Mock
from uuid import uuid4

import pytest

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def postgres():
    from clients.postgres_client import PostgresClient
    return Mock(spec=PostgresClient)


@pytest.fixture
def tx(postgres):
    """Transaction handle yielded by postgres.transaction()."""
    tx = Mock()
    context = MagicMock()
    context.__enter__.return_value = tx
    postgres.transaction.return_value = context
    return tx


def _item_row(**overrides):
    row = {
        "id": str(uuid4()), "name": "Outlet", "nickname": None, "description": None,
        "unit": "each", "unit_price": Decimal("25.00"), "category": None,
        "created_at": NOW, "updated_at": NOW,
    }
    row.update(overrides)
    return row


def _job_row(**overrides):
    row = {
        "id": str(uuid4()), "customer_id": str(uuid4()), "template_id": str(uuid4()),
        "address": "1 King St, Ottawa, ON", "status": "scheduled", "current_phase_id": None,
        "scheduled_date": NOW, "start_date": None, "end_date": None,
        "permit_required": False, "permit_number": None, "total_amount": Decimal("0"),
        "notes": None, "invoice_id": None, "invoice_url": None,
        "created_at": NOW, "updated_at": NOW,
    }
    row.update(overrides)
    return row


class TestItemRepository:
    def test_get_by_id_maps_row(self, postgres):
        from core.repositories.item_repository import ItemRepository

        row = _item_row()
        postgres.execute_single.return_value = row

        item = ItemRepository(postgres).get_by_id(row["id"])

        assert str(item.id) == row["id"]
        assert item.unit_price == Decimal("25.00")

    def test_get_missing(self, postgres):
        from core.repositories.item_repository import ItemRepository

        postgres.execute_single.return_value = None
        assert ItemRepository(postgres).get_by_id(uuid4()) is None

    def test_list_with_category(self, postgres):
        from core.repositories.item_repository import ItemRepository

        postgres.execute.return_value = [_item_row(category="devices")]

        items = ItemRepository(postgres).list(category="devices", limit=10)

        query, params = postgres.execute.call_args.args
        assert "WHERE category = %s" in query
        assert params == ("devices", 10, 0)
        assert items[0].category == "devices"

    def test_update_sets_every_column(self, postgres):
        from core.models import Item
        from core.repositories.item_repository import ItemRepository

        item = Item.model_validate(_item_row())
        postgres.execute_returning.return_value = [_item_row(id=str(item.id))]

        ItemRepository(postgres).update(item)

        query, params = postgres.execute_returning.call_args.args
        assert "unit_price = %s" in query
        assert params[-1] == item.id

    def test_delete_reports_missing(self, postgres):
        from core.repositories.item_repository import ItemRepository

        postgres.execute_returning.return_value = []
        assert ItemRepository(postgres).delete(uuid4()) is False


class TestTemplateRepository:
    def _template(self):
        from core.models import JobTemplate, TemplateCreate, TemplateItemCreate, TemplatePhaseCreate

        return JobTemplate.new(
            TemplateCreate(
                name="Rewire",
                items=[TemplateItemCreate(item_id=uuid4()), TemplateItemCreate(item_id=uuid4())],
                phases=[TemplatePhaseCreate(name="Rough", order=1)],
            )
        )

    def test_create_in_one_transaction(self, postgres, tx):
        from core.repositories.template_repository import TemplateRepository

        TemplateRepository(postgres).create(self._template())

        statements = [c.args[0] for c in tx.execute.call_args_list]
        assert len(statements) == 4
        assert "INSERT INTO job_templates" in statements[0]
        assert sum("INSERT INTO template_items" in s for s in statements) == 2
        assert "INSERT INTO template_phases" in statements[3]
        postgres.execute.assert_not_called()

    def test_update_replaces_phases_in_transaction(self, postgres, tx):
        from core.repositories.template_repository import TemplateRepository

        TemplateRepository(postgres).update(self._template(), replace_phases=True)

        statements = [c.args[0] for c in tx.execute.call_args_list]
        assert "UPDATE job_templates" in statements[0]
        assert "DELETE FROM template_phases" in statements[1]
        assert "INSERT INTO template_phases" in statements[2]

    def test_update_without_phases(self, postgres, tx):
        from core.repositories.template_repository import TemplateRepository

        TemplateRepository(postgres).update(self._template())

        assert tx.execute.call_count == 1

    def test_get_by_id_attaches_items_and_phases(self, postgres):
        from core.repositories.template_repository import TemplateRepository

        template_id = str(uuid4())
        postgres.execute_single.return_value = {
            "id": template_id, "name": "Rewire", "description": None, "is_active": True,
            "created_at": NOW, "updated_at": NOW,
        }
        postgres.execute.side_effect = [
            [{"id": str(uuid4()), "template_id": template_id, "item_id": str(uuid4()), "default_quantity": Decimal("2")}],
            [{"id": str(uuid4()), "template_id": template_id, "name": "Rough", "order": 1, "description": None}],
        ]

        template = TemplateRepository(postgres).get_by_id(template_id)

        assert len(template.items) == 1
        assert template.phases[0].name == "Rough"
        phase_query = postgres.execute.call_args_list[1].args[0]
        assert 'phase_order AS "order"' in phase_query

    def test_create_writes_item_positions(self, postgres, tx):
        from core.repositories.template_repository import TemplateRepository

        template = self._template()
        TemplateRepository(postgres).create(template)

        item_calls = [c.args for c in tx.execute.call_args_list if "INSERT INTO template_items" in c.args[0]]
        assert [(params[2], params[4]) for _, params in item_calls] == [
            (template.items[0].item_id, 0),
            (template.items[1].item_id, 1),
        ]

    def test_items_load_in_position_order(self, postgres):
        from core.repositories.template_repository import TemplateRepository

        template_id = str(uuid4())
        first, second = str(uuid4()), str(uuid4())
        postgres.execute_single.return_value = {
            "id": template_id, "name": "Rewire", "description": None, "is_active": True,
            "created_at": NOW, "updated_at": NOW,
        }
        postgres.execute.side_effect = [
            [
                {"id": str(uuid4()), "template_id": template_id, "item_id": first,
                 "default_quantity": Decimal("0"), "position": 0},
                {"id": str(uuid4()), "template_id": template_id, "item_id": second,
                 "default_quantity": Decimal("0"), "position": 1},
            ],
            [],
        ]

        template = TemplateRepository(postgres).get_by_id(template_id)

        assert "ORDER BY position ASC" in postgres.execute.call_args_list[0].args[0]
        assert [str(i.item_id) for i in template.items] == [first, second]

    def test_add_item_appends_after_existing(self, postgres):
        from core.models import TemplateItem
        from core.repositories.template_repository import TemplateRepository

        template_id = uuid4()
        item = TemplateItem(id=uuid4(), template_id=template_id, item_id=uuid4(), default_quantity=Decimal("1"))

        TemplateRepository(postgres).add_item(item)

        query, params = postgres.execute.call_args.args
        assert "COALESCE(MAX(position) + 1, 0)" in query
        assert params[-1] == template_id

    def test_remove_items_returns_count(self, postgres):
        from core.repositories.template_repository import TemplateRepository

        postgres.execute_returning.return_value = [{"id": "a"}, {"id": "b"}]
        assert TemplateRepository(postgres).remove_items(uuid4(), uuid4()) == 2


class TestJobRepository:
    def test_get_by_id_attaches_children(self, postgres):
        from core.models import JobStatus
        from core.repositories.job_repository import JobRepository

        row = _job_row(status="in_progress")
        postgres.execute_single.return_value = row
        postgres.execute.side_effect = [
            [{
                "id": str(uuid4()), "job_id": row["id"], "item_id": str(uuid4()), "name": "Outlet",
                "nickname": None, "quantity": Decimal("3"), "price": Decimal("25.00"),
                "total": Decimal("75.00"), "is_custom": False, "custom_name": None,
                "custom_description": None, "custom_price": None, "created_at": NOW,
            }],
            [{"id": str(uuid4()), "job_id": row["id"], "url": "https://blob/x.jpg", "caption": None, "uploaded_at": NOW}],
        ]

        job = JobRepository(postgres).get_by_id(row["id"])

        assert job.status == JobStatus.IN_PROGRESS
        assert job.items[0].total == Decimal("75.00")
        assert job.photos[0].url == "https://blob/x.jpg"

    def test_list_filters(self, postgres):
        from core.models import JobStatus
        from core.repositories.job_repository import JobRepository

        postgres.execute.return_value = []
        customer_id = uuid4()

        assert JobRepository(postgres).list(status=JobStatus.COMPLETED, customer_id=customer_id) == []

        query, params = postgres.execute.call_args.args
        assert "status = %s AND customer_id = %s" in query
        assert params == ("completed", customer_id, 100, 0)

    def test_create_inserts_job_then_items(self, postgres):
        from core.models import Job, JobItem
        from core.repositories.job_repository import JobRepository
        from utils.timezone import now_utc
        from datetime import timedelta

        job = Job.new(uuid4(), uuid4(), "1 King St", now_utc() + timedelta(days=1))
        job.items.append(JobItem(id=uuid4(), job_id=job.id, name="Outlet", price=Decimal("25")))

        JobRepository(postgres).create(job)

        statements = [c.args[0] for c in postgres.execute.call_args_list]
        assert "INSERT INTO jobs" in statements[0]
        assert "INSERT INTO job_items" in statements[1]
        assert "scheduled" in postgres.execute.call_args_list[0].args[1]

    def test_update_item_writes_quantity_and_total(self, postgres):
        from core.models import JobItem
        from core.repositories.job_repository import JobRepository

        item = JobItem(id=uuid4(), job_id=uuid4(), name="Outlet", quantity=Decimal("2"), price=Decimal("5"), total=Decimal("10"))

        JobRepository(postgres).update_item(item)

        assert postgres.execute.call_args.args[1] == (Decimal("2"), Decimal("5"), Decimal("10"), item.id)


class TestCompanyRepository:
    def test_save_upserts_fixed_row(self, postgres):
        from core.models import Company, COMPANY_ID
        from core.repositories.customer_repository import CompanyRepository

        company = Company(name="Bright Electric", email="hi@bright.example.com", created_at=NOW, updated_at=NOW)
        postgres.execute_returning.return_value = [company.model_dump()]

        saved = CompanyRepository(postgres).save(company)

        query, params = postgres.execute_returning.call_args.args
        assert "ON CONFLICT (id) DO UPDATE" in query
        assert params[0] == COMPANY_ID
        assert saved.name == "Bright Electric"

    def test_get_unset(self, postgres):
        from core.repositories.customer_repository import CompanyRepository

        postgres.execute_single.return_value = None
        assert CompanyRepository(postgres).get() is None
