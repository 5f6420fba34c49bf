"""Customer service: CRUD over customer records."""

import logging
from uuid import UUID

from core.audit import AuditLogger, AuditAction, compute_changes
from core.errors import NotFoundError
from core.models import Customer, CustomerCreate, CustomerUpdate
from core.repositories.customer_repository import CustomerRepository

logger = logging.getLogger(__name__)


class CustomerService:
    """Service for customer operations."""

    def __init__(self, customers: CustomerRepository, audit: AuditLogger):
        self.customers = customers
        self.audit = audit

    def create(self, data: CustomerCreate) -> Customer:
        """
        Create a customer.

        Raises:
            InvalidFieldError: If name is empty
        """
        customer = self.customers.create(Customer.new(data))

        self.audit.log_change(
            entity_type="customer",
            entity_id=customer.id,
            action=AuditAction.CREATE,
            changes={"created": customer.model_dump(mode="json")}
        )

        return customer

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.customers.get_by_id(customer_id)

    def require(self, customer_id: UUID) -> Customer:
        customer = self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def list(self, limit: int = 100, offset: int = 0) -> list[Customer]:
        return self.customers.list(limit=limit, offset=offset)

    def update(self, customer_id: UUID, data: CustomerUpdate) -> Customer:
        """
        Update customer fields.

        Raises:
            NotFoundError: If customer not found
            InvalidFieldError: If name would become empty
        """
        current = self.require(customer_id)
        updated = self.customers.update(current.apply_update(data))

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="customer",
                entity_id=customer_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated

    def delete(self, customer_id: UUID) -> None:
        current = self.require(customer_id)
        self.customers.delete(customer_id)

        self.audit.log_change(
            entity_type="customer",
            entity_id=customer_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")}
        )
