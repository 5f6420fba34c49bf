"""Customer and company-settings persistence."""

from uuid import UUID

from clients.postgres_client import PostgresClient
from core.models import Customer, Company, COMPANY_ID

_COMPANY_COLUMNS = (
    "name", "email", "logo", "address", "city", "state", "zip",
    "phone", "license", "website",
)


class CustomerRepository:
    """SQL access to the customers table."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, customer: Customer) -> Customer:
        row = self.postgres.execute_returning(
            """
            INSERT INTO customers (id, name, email, phone, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (
                customer.id, customer.name, customer.email, customer.phone,
                customer.created_at, customer.updated_at
            )
        )[0]
        return Customer.model_validate(row)

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        row = self.postgres.execute_single(
            "SELECT * FROM customers WHERE id = %s", (customer_id,)
        )
        return Customer.model_validate(row) if row else None

    def list(self, limit: int = 100, offset: int = 0) -> list[Customer]:
        rows = self.postgres.execute(
            "SELECT * FROM customers ORDER BY name ASC LIMIT %s OFFSET %s",
            (limit, offset)
        )
        return [Customer.model_validate(row) for row in rows]

    def update(self, customer: Customer) -> Customer:
        row = self.postgres.execute_returning(
            """
            UPDATE customers
            SET name = %s, email = %s, phone = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (customer.name, customer.email, customer.phone, customer.updated_at, customer.id)
        )[0]
        return Customer.model_validate(row)

    def delete(self, customer_id: UUID) -> bool:
        rows = self.postgres.execute_returning(
            "DELETE FROM customers WHERE id = %s RETURNING id", (customer_id,)
        )
        return bool(rows)


class CompanyRepository:
    """The single company-settings row."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get(self) -> Company | None:
        row = self.postgres.execute_single(
            "SELECT * FROM companies WHERE id = %s", (COMPANY_ID,)
        )
        return Company.model_validate(row) if row else None

    def save(self, company: Company) -> Company:
        """Insert or overwrite the settings row."""
        values = [getattr(company, column) for column in _COMPANY_COLUMNS]
        updates = ", ".join(f"{column} = EXCLUDED.{column}" for column in _COMPANY_COLUMNS)

        row = self.postgres.execute_returning(
            f"""
            INSERT INTO companies (id, {', '.join(_COMPANY_COLUMNS)}, created_at, updated_at)
            VALUES (%s, {', '.join(['%s'] * len(_COMPANY_COLUMNS))}, %s, %s)
            ON CONFLICT (id) DO UPDATE
            SET {updates}, updated_at = EXCLUDED.updated_at
            RETURNING *
            """,
            (COMPANY_ID, *values, company.created_at, company.updated_at)
        )[0]
        return Company.model_validate(row)
