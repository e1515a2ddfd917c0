"""
Unit tests for the PostgreSQL template store.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from shared.errors import NotFoundError, ServiceError
from service_configurator.app.persistence.postgres import PostgreSQLTemplateStore
from service_configurator.app.rules.models import Option, Rule, Template


def stored(template: Template) -> str:
    return json.dumps(template.to_dict())


class TestPostgreSQLTemplateStore:
    """Test cases for PostgreSQLTemplateStore."""

    @pytest.fixture
    def conn(self):
        """Create a mock asyncpg connection."""
        conn = MagicMock()
        conn.execute = AsyncMock(return_value="OK")
        conn.fetchval = AsyncMock(return_value=None)
        conn.fetch = AsyncMock(return_value=[])
        conn.transaction.return_value.__aenter__.return_value = None
        conn.transaction.return_value.__aexit__.return_value = False
        return conn

    @pytest.fixture
    def store(self, conn):
        """Create a store wired to a mock pool."""
        store = PostgreSQLTemplateStore("postgres://localhost:5432/test")
        pool = MagicMock()
        pool.acquire.return_value.__aenter__.return_value = conn
        pool.acquire.return_value.__aexit__.return_value = False
        pool.close = AsyncMock()
        store.pool = pool
        return store

    def last_written(self, conn):
        """Document passed to the final UPDATE statement."""
        args = conn.execute.call_args_list[-1].args
        assert "UPDATE product_templates" in args[0]
        return json.loads(args[2])

    @pytest.mark.asyncio
    async def test_start_creates_pool_and_table(self, conn):
        """Test starting the store."""
        pool = MagicMock()
        pool.acquire.return_value.__aenter__.return_value = conn
        pool.acquire.return_value.__aexit__.return_value = False
        store = PostgreSQLTemplateStore("postgres://localhost:5432/test", min_size=1, max_size=3)

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            await store.start()

        create_pool.assert_awaited_once()
        assert create_pool.call_args.kwargs["max_size"] == 3
        assert "CREATE TABLE IF NOT EXISTS product_templates" in conn.execute.call_args.args[0]

    @pytest.mark.asyncio
    async def test_start_failure_raises_service_error(self):
        """Test that connection failures surface as ServiceError."""
        store = PostgreSQLTemplateStore("postgres://localhost:5432/test")

        with patch("asyncpg.create_pool", new=AsyncMock(side_effect=OSError("refused"))):
            with pytest.raises(ServiceError):
                await store.start()

    @pytest.mark.asyncio
    async def test_not_started(self):
        """Test that operations before start fail clearly."""
        store = PostgreSQLTemplateStore("postgres://localhost:5432/test")

        with pytest.raises(ServiceError):
            await store.get_template("chair")

    @pytest.mark.asyncio
    async def test_add_rule_appends(self, store, conn):
        """Test that add_rule appends to the stored rules."""
        existing = Template("chair", rules=[Rule("REQUIRES", "a", "b")])
        conn.fetchval.return_value = stored(existing)

        await store.add_rule("chair", Rule("INCOMPATIBLE_WITH", "c", "d"))

        document = self.last_written(conn)
        assert document["rules"] == [
            {"rule_type": "REQUIRES", "primary_choice_id": "a", "secondary_choice_id": "b"},
            {"rule_type": "INCOMPATIBLE_WITH", "primary_choice_id": "c", "secondary_choice_id": "d"},
        ]
        conn.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_mutation_locks_row(self, store, conn):
        """Test that mutations read the row with FOR UPDATE."""
        conn.fetchval.return_value = stored(Template("chair"))

        await store.set_base_price("chair", 100)

        query = conn.fetchval.call_args.args[0]
        assert "FOR UPDATE" in query
        assert self.last_written(conn)["base_price"] == 100

    @pytest.mark.asyncio
    async def test_set_options_overwrites_category(self, store, conn):
        """Test that set_options replaces one category and keeps the others."""
        existing = Template("chair", options={
            "legs": {"legs_wood": Option("Wood", 5)},
            "finish": {"finish_oak": Option("Oak", 20)},
        })
        conn.fetchval.return_value = stored(existing)

        await store.set_options("chair", "legs", {"legs_steel": Option("Steel", 8)})

        assert self.last_written(conn)["options"] == {
            "legs": {"legs_steel": {"name": "Steel", "price_delta": 8}},
            "finish": {"finish_oak": {"name": "Oak", "price_delta": 20}},
        }

    @pytest.mark.asyncio
    async def test_get_template_round_trip(self, store, conn):
        """Test that stored documents keep option order."""
        template = Template(
            "chair",
            base_price=100,
            options={"finish": {
                "finish_oak": Option("Oak", 20),
                "finish_black": Option("Black", 5),
                "finish_ash": Option("Ash", 12),
            }},
            rules=[Rule("REQUIRES", "legs_wood", "finish_oak")],
        )
        conn.fetchval.return_value = stored(template)

        loaded = await store.get_template("chair")

        assert loaded == template
        assert list(loaded.options["finish"]) == ["finish_oak", "finish_black", "finish_ash"]

    @pytest.mark.asyncio
    async def test_get_unknown_template(self, store, conn):
        """Test reading a template with no row."""
        conn.fetchval.return_value = None

        with pytest.raises(NotFoundError):
            await store.get_template("chair")

    @pytest.mark.asyncio
    async def test_write_failure_raises_service_error(self, store, conn):
        """Test that database errors on write surface as ServiceError."""
        conn.execute.side_effect = OSError("connection reset")

        with pytest.raises(ServiceError):
            await store.ensure_template("chair")

    @pytest.mark.asyncio
    async def test_list_template_ids(self, store, conn):
        conn.fetch.return_value = [{"template_id": "chair"}, {"template_id": "desk"}]

        assert await store.list_template_ids() == ["chair", "desk"]

    @pytest.mark.asyncio
    async def test_health_check(self, store, conn):
        """Test health check against the pool."""
        conn.fetchval.return_value = 1
        assert await store.health_check() is True

        conn.fetchval.side_effect = OSError("gone")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_stop_closes_pool(self, store):
        pool = store.pool

        await store.stop()

        pool.close.assert_awaited_once()
        assert store.pool is None
