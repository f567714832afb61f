"""
Customer-specific material prices for quotation and order forms.

Once a customer is picked, the material dropdown shows that customer's
negotiated price where one exists and the catalogue price otherwise.
"""

import asyncio
import math
from typing import Dict, Optional

import aiohttp
from pydantic import ValidationError

from ..api.client import ApiClient
from ..exceptions import ApiError
from ..logging_config import get_logger
from ..models.entities import CustomerMaterialPrice, Entity, EntityId, Material
from ..search.controller import SearchController

logger = get_logger("admin_lookup.pricing")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_price(value: float) -> str:
    """Plain number text: whole prices without a decimal part, never exponent notation."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class CustomerPriceBook:
    """Price list of one customer, loaded from /api/customers/{id}/materials."""

    def __init__(self, client: ApiClient, currency: str = "PKR"):
        self.client = client
        self.currency = currency
        self.customer_id: Optional[EntityId] = None
        self.prices: Dict[str, float] = {}
        self.is_loading = False
        self._load_task: Optional[asyncio.Task] = None
        self._unsubscribe = None

    async def load(self, customer_id: Optional[EntityId]) -> Dict[str, float]:
        """
        Replace the price list with the given customer's prices.

        Failures are logged and leave an empty list; a form without customer
        prices still works with the catalogue prices.
        """
        self.customer_id = customer_id
        if customer_id is None or customer_id == "":
            self.prices = {}
            return self.prices

        self.is_loading = True
        try:
            response = await self.client.get(f"/api/customers/{customer_id}/materials")
            self.prices = self._parse(response)
        except (ApiError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error loading customer material prices | customer_id={customer_id} | error={e}")
            self.prices = {}
        finally:
            self.is_loading = False

        logger.debug(f"Loaded {len(self.prices)} customer prices | customer_id={customer_id}")
        return self.prices

    def _parse(self, response) -> Dict[str, float]:
        if not isinstance(response, dict) or not response.get("success"):
            return {}
        data = response.get("data")
        materials = data.get("materials") if isinstance(data, dict) else None
        if not isinstance(materials, list):
            return {}

        prices: Dict[str, float] = {}
        for item in materials:
            try:
                price = CustomerMaterialPrice.model_validate(item)
            except ValidationError:
                logger.warning(f"Skipping malformed customer price entry: {item!r}")
                continue
            prices[str(price.materialId)] = price.customerPrice
        return prices

    def clear(self) -> None:
        self.customer_id = None
        self.prices = {}

    def price_for(self, material_id: EntityId) -> Optional[float]:
        """Customer price for a material, or None if the customer has none."""
        return self.prices.get(str(material_id))

    def unit_price(self, material: Material) -> float:
        customer_price = self.price_for(material.id)
        if customer_price is not None:
            return customer_price
        return round_half_up(material.unitPrice or 0)

    def label(self, material: Material) -> str:
        """Dropdown label, e.g. "Cement - Customer Price: PKR 950"."""
        customer_price = self.price_for(material.id)
        if customer_price is not None:
            price_label = f"Customer Price: {self.currency} {format_price(customer_price)}"
        else:
            price_label = f"Default Price: {self.currency} {round_half_up(material.unitPrice or 0)}"
        return f"{material.name or 'Unknown'} - {price_label}"

    def bind(self, controller: SearchController) -> None:
        """Follow a customer autocomplete: load on pick, clear on clear."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = controller.on_selection(self._handle_selection)

    def _handle_selection(self, entity: Optional[Entity]) -> None:
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        if entity is None:
            self.clear()
            return
        self._load_task = asyncio.get_running_loop().create_task(self.load(entity.id))

    async def wait_loaded(self) -> None:
        if self._load_task is not None:
            await asyncio.gather(self._load_task, return_exceptions=True)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
