"""
Catalog service for billable items.

Items are the priced units of work and material that templates reference
and jobs bill for. Every mutation validates the full resulting record
before anything is written.
"""

import logging
from uuid import UUID

from core.audit import AuditLogger, AuditAction, compute_changes
from core.errors import NotFoundError
from core.models import Item, ItemCreate, ItemUpdate
from core.repositories.item_repository import ItemRepository

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog item operations."""

    def __init__(self, items: ItemRepository, audit: AuditLogger):
        self.items = items
        self.audit = audit

    def create(self, data: ItemCreate) -> Item:
        """
        Create a catalog item.

        Args:
            data: Item creation data

        Returns:
            Created item

        Raises:
            InvalidFieldError: If name or unit is empty, or price is negative
        """
        item = self.items.create(Item.new(data))

        self.audit.log_change(
            entity_type="item",
            entity_id=item.id,
            action=AuditAction.CREATE,
            changes={"created": item.model_dump(mode="json")}
        )

        return item

    def get_by_id(self, item_id: UUID) -> Item | None:
        return self.items.get_by_id(item_id)

    def require(self, item_id: UUID) -> Item:
        """Get item or raise NotFoundError."""
        item = self.items.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)
        return item

    def list(self, category: str | None = None, limit: int = 100, offset: int = 0) -> list[Item]:
        return self.items.list(category=category, limit=limit, offset=offset)

    def update(self, item_id: UUID, data: ItemUpdate) -> Item:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If item not found
            InvalidFieldError: If the merged record is invalid
        """
        current = self.require(item_id)
        updated = self.items.update(current.apply_update(data))

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="item",
                entity_id=item_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated

    def delete(self, item_id: UUID) -> None:
        """
        Delete an item.

        Raises:
            NotFoundError: If item not found
        """
        current = self.require(item_id)
        self.items.delete(item_id)

        self.audit.log_change(
            entity_type="item",
            entity_id=item_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
        logger.info(f"Deleted item {item_id}")
