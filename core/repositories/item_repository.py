"""Catalog item persistence."""

from uuid import UUID

from clients.postgres_client import PostgresClient
from core.models import Item

_UPDATABLE_COLUMNS = ("name", "nickname", "description", "unit", "unit_price", "category")


class ItemRepository:
    """SQL access to the items table."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def create(self, item: Item) -> Item:
        row = self.postgres.execute_returning(
            """
            INSERT INTO items (
                id, name, nickname, description, unit, unit_price, category,
                created_at, updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (
                item.id, item.name, item.nickname, item.description, item.unit,
                item.unit_price, item.category, item.created_at, item.updated_at
            )
        )[0]
        return Item.model_validate(row)

    def get_by_id(self, item_id: UUID) -> Item | None:
        row = self.postgres.execute_single("SELECT * FROM items WHERE id = %s", (item_id,))
        return Item.model_validate(row) if row else None

    def list(self, category: str | None = None, limit: int = 100, offset: int = 0) -> list[Item]:
        """Items ordered by name, optionally restricted to one category."""
        if category:
            rows = self.postgres.execute(
                "SELECT * FROM items WHERE category = %s ORDER BY name ASC LIMIT %s OFFSET %s",
                (category, limit, offset)
            )
        else:
            rows = self.postgres.execute(
                "SELECT * FROM items ORDER BY name ASC LIMIT %s OFFSET %s",
                (limit, offset)
            )
        return [Item.model_validate(row) for row in rows]

    def update(self, item: Item) -> Item:
        set_parts = [f"{column} = %s" for column in _UPDATABLE_COLUMNS]
        params = [getattr(item, column) for column in _UPDATABLE_COLUMNS]
        params.extend([item.updated_at, item.id])

        row = self.postgres.execute_returning(
            f"""
            UPDATE items
            SET {', '.join(set_parts)}, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]
        return Item.model_validate(row)

    def delete(self, item_id: UUID) -> bool:
        """Returns False if no row was deleted."""
        rows = self.postgres.execute_returning(
            "DELETE FROM items WHERE id = %s RETURNING id", (item_id,)
        )
        return bool(rows)
