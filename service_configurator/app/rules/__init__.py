"""
Rules engine package.

Defines the compatibility rule model and the evaluation functions used by
the Configurator Service. Rules are directional constraints between two
choices (REQUIRES, INCOMPATIBLE_WITH) evaluated against a selection
context, independent of category.

Modules of interest:
- models: Rule, Option, Template, results and request/response models.
- engine: Rule evaluation, option filtering, validation and pricing.

The engine only reads template snapshots; storage lives in app.persistence.
"""
