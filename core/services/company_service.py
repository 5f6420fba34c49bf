"""Company settings service. One row, created on first write."""

import logging

from core.audit import AuditLogger, AuditAction, compute_changes
from core.errors import NotFoundError
from core.models import Company, CompanyUpdate, COMPANY_ID
from core.repositories.customer_repository import CompanyRepository

logger = logging.getLogger(__name__)


class CompanyService:
    """Read and write the company settings row."""

    def __init__(self, company: CompanyRepository, audit: AuditLogger):
        self.company = company
        self.audit = audit

    def get(self) -> Company:
        """
        Raises:
            NotFoundError: If settings were never saved
        """
        company = self.company.get()
        if company is None:
            raise NotFoundError("Company", COMPANY_ID)
        return company

    def update(self, data: CompanyUpdate) -> Company:
        """
        Apply non-empty fields, creating the row on first write.

        Raises:
            InvalidFieldError: If the row does not exist and name or email is missing
        """
        current = self.company.get()

        if current is None:
            saved = self.company.save(Company.new(data))
            self.audit.log_change(
                entity_type="company",
                entity_id=COMPANY_ID,
                action=AuditAction.CREATE,
                changes={"created": saved.model_dump(mode="json")}
            )
            logger.info("Company settings created")
            return saved

        saved = self.company.save(current.apply_update(data))
        changes = compute_changes(current.model_dump(mode="json"), saved.model_dump(mode="json"))
        if changes:
            self.audit.log_change(
                entity_type="company",
                entity_id=COMPANY_ID,
                action=AuditAction.UPDATE,
                changes=changes
            )
        return saved
