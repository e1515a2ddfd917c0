"""
Boundary operations of the Configurator Service.

ProductConfigurator checks request fields, talks to the template store
and hands template snapshots to the rule engine. It is transport
agnostic; the HTTP routes in app.main are thin wrappers around it.
"""

import time
from contextlib import nullcontext
from typing import Any, Dict, List, Mapping, Optional

import pydantic

from shared.errors import ValidationError
from shared.logging import get_logger, set_template_context
from shared.metrics import MetricsCollector

from .persistence import TemplateStore
from .rules import engine
from .rules.models import Number, Option, OptionInput, OptionSummary, Rule, Template, ValidationResult


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def require_fields(fields: Mapping[str, Any]) -> None:
    """Raise ValidationError naming every field that is absent or empty."""
    missing = [name for name, value in fields.items() if _is_missing(value)]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"missing_fields": missing}
        )


class ProductConfigurator:
    """Product configuration operations backed by a template store."""

    def __init__(self, store: TemplateStore, metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("configurator.service")

    async def add_compatibility_rule(
        self,
        template_id: str,
        rule_type: Optional[str],
        primary_choice_id: Optional[str],
        secondary_choice_id: Optional[str],
    ) -> Rule:
        require_fields({
            "rule_type": rule_type,
            "primary_choice_str_id": primary_choice_id,
            "secondary_choice_str_id": secondary_choice_id,
        })
        set_template_context(template_id)

        rule = Rule(
            rule_type=rule_type,
            primary_choice_id=primary_choice_id,
            secondary_choice_id=secondary_choice_id,
        )
        await self.store.add_rule(template_id, rule)

        if self.metrics:
            self.metrics.increment_counter("compatibility_rules_added_total", rule_type=rule_type)
        self.logger.info(
            "Compatibility rule added",
            template_id=template_id,
            rule_type=rule_type,
            primary=primary_choice_id,
            secondary=secondary_choice_id
        )
        return rule

    async def set_base_price(self, template_id: str, base_price: Optional[Number]) -> None:
        require_fields({"base_price": base_price})
        set_template_context(template_id)

        await self.store.set_base_price(template_id, base_price)
        self.logger.info("Base price set", template_id=template_id, base_price=base_price)

    async def add_options(
        self,
        template_id: str,
        category_id: str,
        options: Optional[Mapping[str, Any]],
    ) -> None:
        require_fields({"options": options})
        set_template_context(template_id)

        catalog: Dict[str, Option] = {}
        for choice_id, option in options.items():
            if isinstance(option, Option):
                catalog[choice_id] = option
                continue
            if not isinstance(option, OptionInput):
                try:
                    option = OptionInput.model_validate(option)
                except pydantic.ValidationError as e:
                    raise ValidationError(
                        f"Invalid option: {choice_id}",
                        details={"choice_str_id": choice_id, "errors": e.errors(include_url=False)}
                    )
            catalog[choice_id] = Option(name=option.name, price_delta=option.price_delta)

        await self.store.set_options(template_id, category_id, catalog)
        self.logger.info(
            "Options set",
            template_id=template_id,
            category=category_id,
            count=len(catalog)
        )

    async def get_template(self, template_id: str) -> Template:
        return await self.store.get_template(template_id)

    async def get_available_options(
        self,
        template_id: str,
        target_category_id: str,
        current_selections: Optional[Dict[str, Any]],
    ) -> List[OptionSummary]:
        require_fields({"currentSelections": current_selections})
        set_template_context(template_id)

        template = await self.store.get_template(template_id)
        options = engine.available_options(template, target_category_id, current_selections)

        if self.metrics:
            self.metrics.increment_counter("available_options_requests_total")
        return options

    async def validate_configuration(
        self,
        template_id: str,
        selections: Optional[Dict[str, Any]],
    ) -> ValidationResult:
        require_fields({"selections": selections})
        set_template_context(template_id)

        template = await self.store.get_template(template_id)

        timer = (
            self.metrics.time_operation("configuration_validation_duration_seconds")
            if self.metrics else nullcontext()
        )
        start_time = time.time()
        with timer:
            result = engine.validate_configuration(template, selections)
        duration = time.time() - start_time

        outcome = "valid" if result.is_valid else "invalid"
        if self.metrics:
            self.metrics.increment_counter("configuration_validations_total", result=outcome)
            self.metrics.record_business_event(f"configuration_{outcome}")

        self.logger.info(
            "Configuration validated",
            template_id=template_id,
            is_valid=result.is_valid,
            total_price=result.total_price,
            violations=len(result.errors),
            evaluation_time_ms=round(duration * 1000, 3)
        )
        return result
