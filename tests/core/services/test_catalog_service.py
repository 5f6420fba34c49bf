"""Tests for CatalogService (billable items)."""

import pytest
from decimal import Decimal
from uuid import uuid4


class TestItemCreate:
    """Tests for CatalogService.create."""

    def test_creates_item(self, catalog_service, item_repo):
        """Created item is stored with its price."""
        from core.models import ItemCreate

        item = catalog_service.create(
            ItemCreate(name="GFCI Outlet", unit="each", unit_price=Decimal("32.50"), category="devices")
        )

        assert item.unit_price == Decimal("32.50")
        assert item_repo.get_by_id(item.id).name == "GFCI Outlet"

    def test_logs_create(self, catalog_service, audit):
        """Creation writes a CREATE audit entry."""
        from core.audit import AuditAction
        from core.models import ItemCreate

        item = catalog_service.create(ItemCreate(name="Wire", unit="ft", unit_price=Decimal("0.85")))

        kwargs = audit.log_change.call_args.kwargs
        assert kwargs["entity_type"] == "item"
        assert kwargs["entity_id"] == item.id
        assert kwargs["action"] == AuditAction.CREATE

    def test_negative_price_not_stored(self, catalog_service, item_repo, audit):
        """Invalid items never reach the repository."""
        from core.errors import InvalidFieldError
        from core.models import ItemCreate

        with pytest.raises(InvalidFieldError):
            catalog_service.create(ItemCreate(name="Wire", unit="ft", unit_price=Decimal("-0.01")))

        assert item_repo.rows == {}
        audit.log_change.assert_not_called()


class TestItemRead:
    def test_get_missing_returns_none(self, catalog_service):
        assert catalog_service.get_by_id(uuid4()) is None

    def test_require_missing_raises(self, catalog_service):
        from core.errors import NotFoundError

        with pytest.raises(NotFoundError, match="Item"):
            catalog_service.require(uuid4())

    def test_list_filters_by_category(self, catalog_service, make_item):
        """Category filter narrows results."""
        make_item("Outlet", category="devices")
        make_item("Switch", category="devices")
        make_item("14/2 Wire", category="wire")

        names = [i.name for i in catalog_service.list(category="devices")]

        assert names == ["Outlet", "Switch"]


class TestItemUpdate:
    def test_partial_update(self, catalog_service, make_item):
        """Unset fields are kept."""
        from core.models import ItemUpdate

        item = make_item("Outlet", "25.00", description="Duplex")
        updated = catalog_service.update(item.id, ItemUpdate(unit_price=Decimal("27.00")))

        assert updated.unit_price == Decimal("27.00")
        assert updated.description == "Duplex"

    def test_update_logs_only_changed_fields(self, catalog_service, make_item, audit):
        from core.audit import AuditAction
        from core.models import ItemUpdate

        item = make_item("Outlet", "25.00")
        audit.reset_mock()

        catalog_service.update(item.id, ItemUpdate(unit_price=Decimal("27.00")))

        kwargs = audit.log_change.call_args.kwargs
        assert kwargs["action"] == AuditAction.UPDATE
        assert set(kwargs["changes"]) == {"unit_price"}

    def test_invalid_update_leaves_item_unchanged(self, catalog_service, make_item, item_repo):
        from core.errors import InvalidFieldError
        from core.models import ItemUpdate

        item = make_item("Outlet", "25.00")

        with pytest.raises(InvalidFieldError):
            catalog_service.update(item.id, ItemUpdate(name="Outlet 20A", unit_price=Decimal("-1")))

        stored = item_repo.get_by_id(item.id)
        assert stored.name == "Outlet"
        assert stored.unit_price == Decimal("25.00")

    def test_update_missing_raises(self, catalog_service):
        from core.errors import NotFoundError
        from core.models import ItemUpdate

        with pytest.raises(NotFoundError):
            catalog_service.update(uuid4(), ItemUpdate(name="Anything"))


class TestItemDelete:
    def test_deletes_and_logs(self, catalog_service, make_item, item_repo, audit):
        from core.audit import AuditAction

        item = make_item("Outlet")
        catalog_service.delete(item.id)

        assert item_repo.get_by_id(item.id) is None
        assert audit.log_change.call_args.kwargs["action"] == AuditAction.DELETE

    def test_delete_missing_raises(self, catalog_service):
        from core.errors import NotFoundError

        with pytest.raises(NotFoundError):
            catalog_service.delete(uuid4())
