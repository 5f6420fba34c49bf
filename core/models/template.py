"""Job template domain models.

A template owns its items and phases outright: every TemplateItem and
TemplatePhase carries the id of exactly one template, and creating a
template re-parents whatever was passed in.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from core.errors import InvalidFieldError, InvariantViolationError, NotFoundError
from utils.timezone import now_utc


class TemplateItemCreate(BaseModel):
    """Catalog item reference to put on a template."""

    item_id: UUID
    default_quantity: Decimal = Field(Decimal("0"), ge=0)


class TemplatePhaseCreate(BaseModel):
    """Phase definition to put on a template."""

    name: str = Field(..., min_length=1, max_length=255)
    order: int
    description: str | None = Field(None, max_length=1000)


class TemplateCreate(BaseModel):
    """Data required to create a template."""

    name: str = Field(..., max_length=255)
    description: str | None = Field(None, max_length=2000)
    items: list[TemplateItemCreate] = []
    phases: list[TemplatePhaseCreate] = []


class TemplateUpdate(BaseModel):
    """
    Template fields that can be updated. All optional.

    When phases is given, the template's phases are replaced wholesale.
    """

    name: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=2000)
    is_active: bool | None = None
    phases: list[TemplatePhaseCreate] | None = None


class TemplateItem(BaseModel):
    """Item reference owned by a template."""

    id: UUID
    template_id: UUID
    item_id: UUID
    default_quantity: Decimal

    model_config = {"from_attributes": True}


class TemplatePhase(BaseModel):
    """Ordered stage of work owned by a template."""

    id: UUID
    template_id: UUID
    name: str
    order: int
    description: str | None = None

    model_config = {"from_attributes": True}


class JobTemplate(BaseModel):
    """Full template as stored, with its items and phases."""

    id: UUID
    name: str
    description: str | None = None
    items: list[TemplateItem] = []
    phases: list[TemplatePhase] = []
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def new(cls, data: TemplateCreate) -> "JobTemplate":
        """
        Build a template from creation data.

        Raises:
            InvalidFieldError: If the name is empty or there are no items
        """
        if not data.name or not data.name.strip():
            raise InvalidFieldError("template name is required")
        if not data.items:
            raise InvalidFieldError("template must have at least one item")

        now = now_utc()
        template = cls(
            id=uuid4(),
            name=data.name,
            description=data.description,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        template.items = [
            TemplateItem(
                id=uuid4(),
                template_id=template.id,
                item_id=item.item_id,
                default_quantity=item.default_quantity,
            )
            for item in data.items
        ]
        template.replace_phases(data.phases)
        template.updated_at = now
        return template

    @property
    def ordered_phases(self) -> list[TemplatePhase]:
        """Phases in display sequence."""
        return sorted(self.phases, key=lambda p: p.order)

    def add_item(self, item_id: UUID, default_quantity: Decimal = Decimal("0")) -> TemplateItem:
        """Append a catalog item reference with a fresh id."""
        if default_quantity < 0:
            raise InvalidFieldError("default quantity must not be negative")

        template_item = TemplateItem(
            id=uuid4(),
            template_id=self.id,
            item_id=item_id,
            default_quantity=default_quantity,
        )
        self.items.append(template_item)
        self.updated_at = now_utc()
        return template_item

    def remove_item(self, item_id: UUID) -> list[TemplateItem]:
        """
        Remove every reference to a catalog item.

        Returns:
            The removed template items

        Raises:
            InvariantViolationError: If the template would be left empty
            NotFoundError: If the item is not on the template
        """
        if len(self.items) <= 1:
            raise InvariantViolationError("cannot remove last item from template")

        removed = [i for i in self.items if i.item_id == item_id]
        if not removed:
            raise NotFoundError("Template item", item_id)
        if len(removed) == len(self.items):
            raise InvariantViolationError("cannot remove last item from template")

        self.items = [i for i in self.items if i.item_id != item_id]
        self.updated_at = now_utc()
        return removed

    def get_item(self, template_item_id: UUID) -> TemplateItem:
        for item in self.items:
            if item.id == template_item_id:
                return item
        raise NotFoundError("Template item", template_item_id)

    def replace_phases(self, phases: list[TemplatePhaseCreate]) -> None:
        """Swap in a new phase set, each phase with a fresh id owned by this template."""
        self.phases = [
            TemplatePhase(
                id=uuid4(),
                template_id=self.id,
                name=phase.name,
                order=phase.order,
                description=phase.description,
            )
            for phase in phases
        ]
        self.updated_at = now_utc()

    def apply_update(self, data: TemplateUpdate) -> None:
        """Apply name/description/active/phases from an update, validating first."""
        if data.name is not None and not data.name.strip():
            raise InvalidFieldError("template name is required")

        if data.name is not None:
            self.name = data.name
        if data.description is not None:
            self.description = data.description
        if data.is_active is True:
            self.activate()
        elif data.is_active is False:
            self.deactivate()
        if data.phases is not None:
            self.replace_phases(data.phases)
        self.updated_at = now_utc()

    def activate(self) -> None:
        self.is_active = True
        self.updated_at = now_utc()

    def deactivate(self) -> None:
        """Hide the template from job creation without deleting it."""
        self.is_active = False
        self.updated_at = now_utc()
