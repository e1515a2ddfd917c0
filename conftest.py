"""
Shared pytest configuration for the Product Configurator service.
"""

import pytest

from service_configurator.app.persistence import InMemoryTemplateStore


@pytest.fixture
def store():
    """Empty in-memory template store."""
    return InMemoryTemplateStore()
