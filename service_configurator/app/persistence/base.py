"""
Template store contract for the Configurator Service.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from ..rules.models import Number, Option, Rule, Template


class TemplateStore(ABC):
    """Owns templates: base price, option catalog and rule sequence.

    Every mutation creates the template shell on first use. Reads return
    a snapshot that later mutations do not affect, and raise
    ``NotFoundError`` for templates that were never mutated.
    """

    async def start(self):
        """Acquire backend resources."""

    async def stop(self):
        """Release backend resources."""

    async def health_check(self) -> bool:
        return True

    @abstractmethod
    async def ensure_template(self, template_id: str) -> None:
        ...

    @abstractmethod
    async def add_rule(self, template_id: str, rule: Rule) -> None:
        ...

    @abstractmethod
    async def set_base_price(self, template_id: str, price: Number) -> None:
        ...

    @abstractmethod
    async def set_options(self, template_id: str, category_id: str, options: Dict[str, Option]) -> None:
        ...

    @abstractmethod
    async def get_template(self, template_id: str) -> Template:
        ...

    @abstractmethod
    async def list_template_ids(self) -> List[str]:
        ...
