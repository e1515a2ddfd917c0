"""
Compatibility rule evaluation and pricing for the Configurator Service.

Everything here is a pure reader: templates are snapshots handed over by
the store and are never mutated.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Union

from shared.logging import get_logger
from .models import Rule, RuleType, Template, OptionSummary, ValidationResult

logger = get_logger("configurator.rule_engine")

SelectionContext = Union[Mapping[str, Any], FrozenSet[str]]


def selected_choices(selections: SelectionContext) -> FrozenSet[str]:
    """Convert a selection context to the set of selected choice ids.

    A choice counts as selected only when its key maps to itself; pairs
    whose value does not echo the key are ignored.
    """
    if isinstance(selections, frozenset):
        return selections
    return frozenset(key for key, value in selections.items() if key == value)


def rule_satisfied(rule: Rule, selections: SelectionContext) -> bool:
    """Check a single rule against a selection context."""
    selected = selected_choices(selections)

    if rule.primary_choice_id not in selected:
        return True

    if rule.rule_type == RuleType.REQUIRES.value:
        return rule.secondary_choice_id in selected

    if rule.rule_type == RuleType.INCOMPATIBLE_WITH.value:
        return rule.secondary_choice_id not in selected

    return True


def violation_message(rule: Rule) -> str:
    """Human readable description of a violated rule."""
    if rule.rule_type == RuleType.INCOMPATIBLE_WITH.value:
        return f'"{rule.primary_choice_id}" is incompatible with "{rule.secondary_choice_id}"'
    if rule.rule_type == RuleType.REQUIRES.value:
        return f'"{rule.primary_choice_id}" requires "{rule.secondary_choice_id}"'
    return f'"{rule.primary_choice_id}" {rule.rule_type} "{rule.secondary_choice_id}"'


def all_rules_satisfied(rules: Iterable[Rule], selections: SelectionContext) -> bool:
    selected = selected_choices(selections)
    return all(rule_satisfied(rule, selected) for rule in rules)


def available_options(
    template: Template,
    target_category_id: str,
    current_selections: SelectionContext,
) -> List[OptionSummary]:
    """Options of a category that are compatible with the current selections.

    Rules are not scoped to categories: every rule of the template is
    checked, whichever category is being queried. The result keeps the
    insertion order of the category's options.
    """
    category_options = template.category_options(target_category_id)
    if not category_options:
        return []

    # The verdict does not depend on the candidate choice, so it is the
    # same for every option of the category.
    options: List[OptionSummary] = []
    if all_rules_satisfied(template.rules, current_selections):
        options = [
            OptionSummary(choice_id=choice_id, name=option.name, price_delta=option.price_delta)
            for choice_id, option in category_options.items()
        ]

    logger.debug(
        "Available options computed",
        template_id=template.template_id,
        category=target_category_id,
        total=len(category_options),
        available=len(options)
    )
    return options


def total_price(template: Template, selections: Mapping[str, Any]) -> Any:
    """Base price plus the price delta of every selection key found in the catalog.

    Keys that match no option in any category add nothing.
    """
    price = template.base_price or 0
    for choice_id in selections:
        option = template.find_option(choice_id)
        if option is not None:
            price += option.price_delta
    return price


def validate_configuration(template: Template, selections: Dict[str, Any]) -> ValidationResult:
    """Validate a full selection set and price it when every rule holds."""
    selected = selected_choices(selections)

    errors = [
        violation_message(rule)
        for rule in template.rules
        if not rule_satisfied(rule, selected)
    ]

    if errors:
        logger.debug(
            "Configuration rejected",
            template_id=template.template_id,
            violations=len(errors)
        )
        return ValidationResult(is_valid=False, selections=selections, errors=errors)

    price = total_price(template, selections)
    logger.debug(
        "Configuration accepted",
        template_id=template.template_id,
        total_price=price
    )
    return ValidationResult(is_valid=True, selections=selections, total_price=price)
