"""
Configurator Service package for product templates.

This package decides which option choices stay legal for a product
template and validates and prices complete configurations. It provides:

- app.main: API surface for templates, rules, option filtering and validation.
- app.configurator: Boundary operations shared by every transport.
- app.rules: Rule model and evaluation engine.
- app.persistence: Template stores (in-memory, PostgreSQL).

Guidelines:
- Rule evaluation only reads template snapshots; the store owns all data.
- Keep evaluation deterministic: rule order drives error order.
"""
