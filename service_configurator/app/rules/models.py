"""
Rule, catalog and template data models for the Configurator Service.
"""

from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

Number = Union[int, float]


class RuleType(str, Enum):
    """Compatibility rule types."""
    REQUIRES = "REQUIRES"
    INCOMPATIBLE_WITH = "INCOMPATIBLE_WITH"


@dataclass(frozen=True)
class Rule:
    """Directional compatibility constraint between two choices.

    ``rule_type`` is kept as a plain string so that rules of a type the
    engine does not know about can still be stored; they never block.
    """
    rule_type: str
    primary_choice_id: str
    secondary_choice_id: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "rule_type": self.rule_type,
            "primary_choice_id": self.primary_choice_id,
            "secondary_choice_id": self.secondary_choice_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        return cls(
            rule_type=data["rule_type"],
            primary_choice_id=data["primary_choice_id"],
            secondary_choice_id=data["secondary_choice_id"],
        )


@dataclass(frozen=True)
class Option:
    """Catalog entry for one choice of a category."""
    name: Optional[str]
    price_delta: Number = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price_delta": self.price_delta}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Option":
        return cls(name=data.get("name"), price_delta=data.get("price_delta", 0))


@dataclass
class Template:
    """Configurable product: base price, option catalog and rule sequence."""
    template_id: str
    base_price: Number = 0
    options: Dict[str, Dict[str, Option]] = field(default_factory=dict)
    rules: List[Rule] = field(default_factory=list)

    def category_options(self, category_id: str) -> Dict[str, Option]:
        """Options of a category; empty when the category was never set."""
        return self.options.get(category_id, {})

    def find_option(self, choice_id: str) -> Optional[Option]:
        """First option with this choice id, scanning categories in insertion order."""
        for category_options in self.options.values():
            option = category_options.get(choice_id)
            if option is not None:
                return option
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "base_price": self.base_price,
            "options": {
                category_id: {
                    choice_id: option.to_dict()
                    for choice_id, option in category_options.items()
                }
                for category_id, category_options in self.options.items()
            },
            "rules": [rule.to_dict() for rule in self.rules],
        }


@dataclass(frozen=True)
class OptionSummary:
    """A choice that remains legal for a category."""
    choice_id: str
    name: Optional[str]
    price_delta: Number


@dataclass
class ValidationResult:
    """Outcome of validating a full selection set."""
    is_valid: bool
    selections: Dict[str, Any] = field(default_factory=dict)
    total_price: Optional[Number] = None
    errors: List[str] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        if self.is_valid:
            return {
                "is_valid": True,
                "total_price": self.total_price,
                "selections": self.selections,
            }
        return {"is_valid": False, "errors": self.errors}


class CompatibilityRuleRequest(BaseModel):
    """Request model for adding a compatibility rule."""
    rule_type: Optional[str] = Field(None, description="REQUIRES or INCOMPATIBLE_WITH")
    primary_choice_str_id: Optional[str] = Field(None, description="Choice the rule applies to")
    secondary_choice_str_id: Optional[str] = Field(None, description="Choice the rule refers to")


class AvailableOptionsRequest(BaseModel):
    """Request model for filtering the options of a category."""
    current_selections: Optional[Dict[str, Any]] = Field(
        None, alias="currentSelections", description="Selected choices, each mapped to itself"
    )


class ValidateConfigurationRequest(BaseModel):
    """Request model for validating a configuration."""
    selections: Optional[Dict[str, Any]] = Field(None, description="Selected choices, each mapped to itself")


class BasePriceRequest(BaseModel):
    """Request model for setting a template base price."""
    base_price: Optional[Number] = Field(None, description="Template base price")


class OptionInput(BaseModel):
    """A single catalog entry as submitted by callers."""
    name: Optional[str] = Field(None, description="Display name")
    price_delta: Number = Field(0, description="Price added when selected")


class OptionsRequest(BaseModel):
    """Request model for replacing the options of a category."""
    options: Optional[Dict[str, OptionInput]] = Field(None, description="Choice id to option")


class OptionSummaryResponse(BaseModel):
    """Response model for an available option."""
    name: Optional[str]
    choice_str_id: str
    price_delta: Number


class MessageResponse(BaseModel):
    """Acknowledgement for mutation requests."""
    message: str
