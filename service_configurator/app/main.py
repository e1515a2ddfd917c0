"""
Configurator service for product templates.
"""

from typing import List, Optional

from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .configurator import ProductConfigurator
from .persistence import TemplateStore, create_template_store
from .rules.models import (
    CompatibilityRuleRequest, AvailableOptionsRequest, ValidateConfigurationRequest,
    BasePriceRequest, OptionsRequest, OptionSummaryResponse, MessageResponse
)


class ConfiguratorService(BaseService):
    """Configurator service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, store: Optional[TemplateStore] = None):
        super().__init__("configurator", 8020, config=config)

        # Initialize components
        self.store = store or create_template_store(self.config)
        self.configurator = ProductConfigurator(self.store, metrics=self.metrics)

        self._setup_configurator_routes()

    def _setup_configurator_routes(self):
        """Set up configurator-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "configurator",
                "message": "Product Configurator Service",
                "version": "1.0.0",
                "capabilities": ["compatibility_rules", "option_filtering", "pricing"],
                "store_backend": self.config.store_backend
            }

        @self.app.post(
            "/product-templates/{template_str_id}/compatibility-rules",
            response_model=MessageResponse
        )
        async def add_compatibility_rule(template_str_id: str, request: CompatibilityRuleRequest):
            """Add a compatibility rule to a template."""
            await self.configurator.add_compatibility_rule(
                template_str_id,
                request.rule_type,
                request.primary_choice_str_id,
                request.secondary_choice_str_id
            )
            return MessageResponse(message="Compatibility rule added successfully.")

        @self.app.post(
            "/product-templates/{template_str_id}/available-options/{target_category_str_id}",
            response_model=List[OptionSummaryResponse]
        )
        async def get_available_options(
            template_str_id: str,
            target_category_str_id: str,
            request: AvailableOptionsRequest
        ):
            """List the options of a category compatible with the current selections."""
            options = await self.configurator.get_available_options(
                template_str_id,
                target_category_str_id,
                request.current_selections
            )
            return [
                OptionSummaryResponse(
                    name=option.name,
                    choice_str_id=option.choice_id,
                    price_delta=option.price_delta
                )
                for option in options
            ]

        @self.app.post("/product-templates/{template_str_id}/validate-configuration")
        async def validate_configuration(template_str_id: str, request: ValidateConfigurationRequest):
            """Validate a full configuration and price it."""
            result = await self.configurator.validate_configuration(
                template_str_id,
                request.selections
            )
            return JSONResponse(
                status_code=200 if result.is_valid else 400,
                content=result.to_response()
            )

        @self.app.post(
            "/product-templates/{template_str_id}/set-base-price",
            response_model=MessageResponse
        )
        async def set_base_price(template_str_id: str, request: BasePriceRequest):
            """Set the base price of a template."""
            await self.configurator.set_base_price(template_str_id, request.base_price)
            return MessageResponse(message="Base price set successfully.")

        @self.app.post(
            "/product-templates/{template_str_id}/options/{category_str_id}",
            response_model=MessageResponse
        )
        async def add_options(template_str_id: str, category_str_id: str, request: OptionsRequest):
            """Replace the options of a category."""
            await self.configurator.add_options(
                template_str_id,
                category_str_id,
                request.options
            )
            return MessageResponse(message="Options added successfully.")

        @self.app.get("/product-templates/{template_str_id}")
        async def get_template(template_str_id: str):
            """Return a template's base price, options and rules."""
            template = await self.configurator.get_template(template_str_id)
            return template.to_dict()

    async def _check_dependencies(self):
        """Check configurator service dependencies."""
        healthy = await self.store.health_check()
        return {"template_store": "ok" if healthy else "error"}

    async def start(self):
        """Start configurator service components."""
        await self.store.start()
        self.logger.info("Configurator service started", store_backend=self.config.store_backend)

    async def stop(self):
        """Stop configurator service components."""
        await self.store.stop()
        self.logger.info("Configurator service stopped")


def create_app(config: Optional[ServiceConfig] = None, store: Optional[TemplateStore] = None):
    """Create configurator service application."""
    service = ConfiguratorService(config=config, store=store)
    return service.app


if __name__ == "__main__":
    service = ConfiguratorService()
    service.run()
