"""
In-memory template store for the Configurator Service.
"""

import asyncio
import copy
from typing import Dict, List

from shared.logging import get_logger
from shared.errors import NotFoundError
from ..rules.models import Number, Option, Rule, Template
from .base import TemplateStore


class InMemoryTemplateStore(TemplateStore):
    """Transient store keeping templates in a dict.

    Access to one template is serialized through its own lock; templates
    are independent of each other.
    """

    def __init__(self):
        self.logger = get_logger("configurator.persistence.memory")
        self._templates: Dict[str, Template] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, template_id: str) -> asyncio.Lock:
        # setdefault is atomic with respect to the event loop
        return self._locks.setdefault(template_id, asyncio.Lock())

    def _ensure(self, template_id: str) -> Template:
        template = self._templates.get(template_id)
        if template is None:
            template = Template(template_id=template_id)
            self._templates[template_id] = template
            self.logger.info("Template created", template_id=template_id)
        return template

    async def ensure_template(self, template_id: str) -> None:
        async with self._lock_for(template_id):
            self._ensure(template_id)

    async def add_rule(self, template_id: str, rule: Rule) -> None:
        async with self._lock_for(template_id):
            self._ensure(template_id).rules.append(rule)

    async def set_base_price(self, template_id: str, price: Number) -> None:
        async with self._lock_for(template_id):
            self._ensure(template_id).base_price = price

    async def set_options(self, template_id: str, category_id: str, options: Dict[str, Option]) -> None:
        async with self._lock_for(template_id):
            self._ensure(template_id).options[category_id] = dict(options)

    async def get_template(self, template_id: str) -> Template:
        if template_id not in self._templates:
            raise NotFoundError("Template not found.", details={"template_id": template_id})

        async with self._lock_for(template_id):
            return copy.deepcopy(self._templates[template_id])

    async def list_template_ids(self) -> List[str]:
        return list(self._templates)

    def clear(self):
        """Drop every template."""
        self._templates.clear()
        self._locks.clear()
