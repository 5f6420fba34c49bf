"""
Template service: reusable item and phase sets that seed new jobs.

A template always holds at least one item. Deactivated templates stay in
the database so existing jobs keep their reference, but are hidden from
job creation pickers.
"""

import logging
from decimal import Decimal
from uuid import UUID

from core.audit import AuditLogger, AuditAction, compute_changes
from core.errors import InvalidFieldError, NotFoundError
from core.models import JobTemplate, TemplateCreate, TemplateItem, TemplateUpdate
from core.repositories.item_repository import ItemRepository
from core.repositories.template_repository import TemplateRepository

logger = logging.getLogger(__name__)


class TemplateService:
    """Service for job template operations."""

    def __init__(
        self,
        templates: TemplateRepository,
        items: ItemRepository,
        audit: AuditLogger,
    ):
        self.templates = templates
        self.items = items
        self.audit = audit

    def _require_item(self, item_id: UUID) -> None:
        if self.items.get_by_id(item_id) is None:
            raise NotFoundError("Item", item_id)

    def _log_update(self, before: dict, template: JobTemplate) -> None:
        changes = compute_changes(before, template.model_dump(mode="json"))
        if changes:
            self.audit.log_change(
                entity_type="job_template",
                entity_id=template.id,
                action=AuditAction.UPDATE,
                changes=changes
            )

    def create(self, data: TemplateCreate) -> JobTemplate:
        """
        Create a template with its items and phases in one transaction.

        Args:
            data: Template creation data

        Returns:
            Created template, every item and phase re-parented to it

        Raises:
            InvalidFieldError: If the name is empty or there are no items
            NotFoundError: If a referenced catalog item does not exist
        """
        template = JobTemplate.new(data)
        for item in template.items:
            self._require_item(item.item_id)

        self.templates.create(template)

        self.audit.log_change(
            entity_type="job_template",
            entity_id=template.id,
            action=AuditAction.CREATE,
            changes={"created": template.model_dump(mode="json")}
        )
        logger.info(f"Created template {template.id} with {len(template.items)} items")

        return template

    def get_by_id(self, template_id: UUID) -> JobTemplate | None:
        return self.templates.get_by_id(template_id)

    def require(self, template_id: UUID) -> JobTemplate:
        template = self.templates.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    def list(self, active_only: bool = False, limit: int = 100, offset: int = 0) -> list[JobTemplate]:
        return self.templates.list(active_only=active_only, limit=limit, offset=offset)

    def update(self, template_id: UUID, data: TemplateUpdate) -> JobTemplate:
        """
        Update template fields. A phases list replaces all existing phases
        atomically.

        Raises:
            NotFoundError: If template not found
            InvalidFieldError: If name would become empty
        """
        template = self.require(template_id)
        before = template.model_dump(mode="json")

        template.apply_update(data)
        self.templates.update(template, replace_phases=data.phases is not None)

        self._log_update(before, template)
        return template

    def add_item(
        self,
        template_id: UUID,
        item_id: UUID,
        default_quantity: Decimal = Decimal("0"),
    ) -> TemplateItem:
        """
        Append a catalog item to a template.

        Raises:
            NotFoundError: If template or catalog item not found
            InvalidFieldError: If default_quantity is negative
        """
        template = self.require(template_id)
        self._require_item(item_id)

        template_item = template.add_item(item_id, default_quantity)
        self.templates.add_item(template_item)
        self.templates.update(template)

        self.audit.log_change(
            entity_type="job_template",
            entity_id=template_id,
            action=AuditAction.UPDATE,
            changes={"items": {"added": template_item.model_dump(mode="json")}}
        )
        return template_item

    def update_item(
        self,
        template_id: UUID,
        template_item_id: UUID,
        default_quantity: Decimal,
    ) -> TemplateItem:
        """
        Change a template item's default quantity.

        Raises:
            NotFoundError: If template or template item not found
            InvalidFieldError: If default_quantity is negative
        """
        if default_quantity < 0:
            raise InvalidFieldError("default quantity must not be negative")

        template = self.require(template_id)
        template_item = template.get_item(template_item_id)
        old_quantity = template_item.default_quantity

        template_item.default_quantity = default_quantity
        self.templates.update_item(template_item)

        if old_quantity != default_quantity:
            self.audit.log_change(
                entity_type="job_template",
                entity_id=template_id,
                action=AuditAction.UPDATE,
                changes={
                    f"items.{template_item_id}.default_quantity": {
                        "old": str(old_quantity),
                        "new": str(default_quantity),
                    }
                }
            )
        return template_item

    def remove_item(self, template_id: UUID, item_id: UUID) -> JobTemplate:
        """
        Remove a catalog item from a template.

        Raises:
            NotFoundError: If template not found, or item not on it
            InvariantViolationError: If the template would be left empty
        """
        template = self.require(template_id)
        removed = template.remove_item(item_id)

        self.templates.remove_items(template_id, item_id)
        self.templates.update(template)

        self.audit.log_change(
            entity_type="job_template",
            entity_id=template_id,
            action=AuditAction.UPDATE,
            changes={"items": {"removed": [r.model_dump(mode="json") for r in removed]}}
        )
        return template

    def activate(self, template_id: UUID) -> JobTemplate:
        template = self.require(template_id)
        before = template.model_dump(mode="json")
        template.activate()
        self.templates.update(template)
        self._log_update(before, template)
        return template

    def deactivate(self, template_id: UUID) -> JobTemplate:
        template = self.require(template_id)
        before = template.model_dump(mode="json")
        template.deactivate()
        self.templates.update(template)
        self._log_update(before, template)
        return template

    def delete(self, template_id: UUID) -> None:
        template = self.require(template_id)
        self.templates.delete(template_id)

        self.audit.log_change(
            entity_type="job_template",
            entity_id=template_id,
            action=AuditAction.DELETE,
            changes={"deleted": template.model_dump(mode="json")}
        )
