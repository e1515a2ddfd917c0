"""
PostgreSQL template store for the Configurator Service.

Each template is one row keyed by its identifier. The template itself is
kept as a JSON document (nested maps for options, an ordered list for
rules). The column is ``JSON`` rather than ``JSONB`` because option order
is significant and JSONB does not keep object key order.

Mutations lock the row (``SELECT ... FOR UPDATE``) inside a transaction,
so concurrent writers to one template are serialized.
"""

import json
from typing import Callable, Dict, List, Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import NotFoundError, ServiceError
from ..rules.models import Number, Option, Rule, Template
from .base import TemplateStore


class PostgreSQLTemplateStore(TemplateStore):
    """PostgreSQL persistence layer for templates."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.logger = get_logger("configurator.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=30
            )

            # Create tables if they don't exist
            await self._create_tables()

            self.logger.info("PostgreSQL template store started")

        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Failed to start PostgreSQL template store", error=str(e))
            raise ServiceError("Template store unavailable", details={"error": str(e)})

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL template store stopped")

    async def health_check(self) -> bool:
        """Check database connectivity."""
        if not self.pool:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (OSError, asyncpg.PostgresError) as e:
            self.logger.warning("PostgreSQL health check failed", error=str(e))
            return False

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS product_templates (
                    template_id VARCHAR(255) PRIMARY KEY,
                    document JSON NOT NULL,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

    def _require_pool(self) -> asyncpg.Pool:
        if not self.pool:
            raise ServiceError("Template store not started")
        return self.pool

    async def _mutate(self, template_id: str, change: Callable[[Template], None]) -> None:
        """Apply ``change`` to a template under its row lock, creating it if needed."""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute("""
                        INSERT INTO product_templates (template_id, document)
                        VALUES ($1, $2::json)
                        ON CONFLICT (template_id) DO NOTHING
                    """, template_id, json.dumps(Template(template_id=template_id).to_dict()))

                    document = await conn.fetchval("""
                        SELECT document FROM product_templates
                        WHERE template_id = $1 FOR UPDATE
                    """, template_id)

                    template = self._document_to_template(template_id, document)
                    change(template)

                    await conn.execute("""
                        UPDATE product_templates
                        SET document = $2::json, updated_at = NOW()
                        WHERE template_id = $1
                    """, template_id, json.dumps(template.to_dict()))
        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Template store write failed", template_id=template_id, error=str(e))
            raise ServiceError("Template store write failed", details={"error": str(e)})

    async def ensure_template(self, template_id: str) -> None:
        await self._mutate(template_id, lambda template: None)

    async def add_rule(self, template_id: str, rule: Rule) -> None:
        await self._mutate(template_id, lambda template: template.rules.append(rule))
        self.logger.info("Rule saved", template_id=template_id, rule_type=rule.rule_type)

    async def set_base_price(self, template_id: str, price: Number) -> None:
        def change(template: Template):
            template.base_price = price

        await self._mutate(template_id, change)

    async def set_options(self, template_id: str, category_id: str, options: Dict[str, Option]) -> None:
        def change(template: Template):
            template.options[category_id] = dict(options)

        await self._mutate(template_id, change)

    async def get_template(self, template_id: str) -> Template:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                document = await conn.fetchval("""
                    SELECT document FROM product_templates WHERE template_id = $1
                """, template_id)
        except (OSError, asyncpg.PostgresError) as e:
            self.logger.error("Template store read failed", template_id=template_id, error=str(e))
            raise ServiceError("Template store read failed", details={"error": str(e)})

        if document is None:
            raise NotFoundError("Template not found.", details={"template_id": template_id})

        return self._document_to_template(template_id, document)

    async def list_template_ids(self) -> List[str]:
        pool = self._require_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT template_id FROM product_templates ORDER BY created_at")
        return [row["template_id"] for row in rows]

    def _document_to_template(self, template_id: str, document) -> Template:
        """Convert a stored JSON document to a Template."""
        # asyncpg hands JSON back as text unless a codec is registered
        if isinstance(document, (str, bytes)):
            document = json.loads(document)

        return Template(
            template_id=template_id,
            base_price=document.get("base_price", 0),
            options={
                category_id: {
                    choice_id: Option.from_dict(option)
                    for choice_id, option in category_options.items()
                }
                for category_id, category_options in document.get("options", {}).items()
            },
            rules=[Rule.from_dict(rule) for rule in document.get("rules", [])],
        )
