"""
Job template persistence.

A template is stored across three tables. Creation, and any update that
replaces phases, run inside one transaction so a template is never
visible half-written.
"""

from collections import defaultdict
from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.models import JobTemplate, TemplateItem, TemplatePhase

_PHASE_SELECT = """
    SELECT id, template_id, name, phase_order AS "order", description
    FROM template_phases
"""


def _insert_phase(tx: Transaction, phase: TemplatePhase) -> None:
    tx.execute(
        """
        INSERT INTO template_phases (id, template_id, name, phase_order, description)
        VALUES (%s, %s, %s, %s, %s)
        """,
        (phase.id, phase.template_id, phase.name, phase.order, phase.description)
    )


class TemplateRepository:
    """SQL access to job_templates, template_items and template_phases."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def _attach_children(self, rows: list[dict]) -> list[JobTemplate]:
        if not rows:
            return []

        ids = [str(row["id"]) for row in rows]
        items = defaultdict(list)
        for row in self.postgres.execute(
            "SELECT * FROM template_items WHERE template_id = ANY(%s::uuid[]) ORDER BY position ASC, id ASC",
            (ids,)
        ):
            items[row["template_id"]].append(TemplateItem.model_validate(row))

        phases = defaultdict(list)
        for row in self.postgres.execute(
            f"{_PHASE_SELECT} WHERE template_id = ANY(%s::uuid[]) ORDER BY phase_order ASC",
            (ids,)
        ):
            phases[row["template_id"]].append(TemplatePhase.model_validate(row))

        return [
            JobTemplate.model_validate(
                {**row, "items": items[row["id"]], "phases": phases[row["id"]]}
            )
            for row in rows
        ]

    def create(self, template: JobTemplate) -> None:
        """Insert the template with all its items and phases atomically."""
        with self.postgres.transaction() as tx:
            tx.execute(
                """
                INSERT INTO job_templates (id, name, description, is_active, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (
                    template.id, template.name, template.description,
                    template.is_active, template.created_at, template.updated_at
                )
            )
            for position, item in enumerate(template.items):
                tx.execute(
                    """
                    INSERT INTO template_items (id, template_id, item_id, default_quantity, position)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (item.id, template.id, item.item_id, item.default_quantity, position)
                )
            for phase in template.phases:
                _insert_phase(tx, phase)

    def get_by_id(self, template_id: UUID) -> JobTemplate | None:
        row = self.postgres.execute_single(
            "SELECT * FROM job_templates WHERE id = %s", (template_id,)
        )
        if row is None:
            return None
        return self._attach_children([row])[0]

    def list(self, active_only: bool = False, limit: int = 100, offset: int = 0) -> list[JobTemplate]:
        where = "WHERE is_active = true" if active_only else ""
        rows = self.postgres.execute(
            f"SELECT * FROM job_templates {where} ORDER BY name ASC LIMIT %s OFFSET %s",
            (limit, offset)
        )
        return self._attach_children(rows)

    def update(self, template: JobTemplate, replace_phases: bool = False) -> None:
        """
        Write name/description/active flag.

        With replace_phases, existing phases are deleted and the template's
        current phase set inserted in the same transaction.
        """
        with self.postgres.transaction() as tx:
            tx.execute(
                """
                UPDATE job_templates
                SET name = %s, description = %s, is_active = %s, updated_at = %s
                WHERE id = %s
                """,
                (
                    template.name, template.description, template.is_active,
                    template.updated_at, template.id
                )
            )
            if replace_phases:
                tx.execute("DELETE FROM template_phases WHERE template_id = %s", (template.id,))
                for phase in template.phases:
                    _insert_phase(tx, phase)

    def add_item(self, item: TemplateItem) -> None:
        """Append the item after the template's existing items."""
        self.postgres.execute(
            """
            INSERT INTO template_items (id, template_id, item_id, default_quantity, position)
            SELECT %s, %s, %s, %s, COALESCE(MAX(position) + 1, 0)
            FROM template_items WHERE template_id = %s
            """,
            (item.id, item.template_id, item.item_id, item.default_quantity, item.template_id)
        )

    def update_item(self, item: TemplateItem) -> None:
        self.postgres.execute(
            "UPDATE template_items SET default_quantity = %s WHERE id = %s",
            (item.default_quantity, item.id)
        )

    def remove_items(self, template_id: UUID, item_id: UUID) -> int:
        """Delete every reference to a catalog item; returns rows removed."""
        rows = self.postgres.execute_returning(
            "DELETE FROM template_items WHERE template_id = %s AND item_id = %s RETURNING id",
            (template_id, item_id)
        )
        return len(rows)

    def delete(self, template_id: UUID) -> bool:
        """Items and phases go with the template via ON DELETE CASCADE."""
        rows = self.postgres.execute_returning(
            "DELETE FROM job_templates WHERE id = %s RETURNING id", (template_id,)
        )
        return bool(rows)
