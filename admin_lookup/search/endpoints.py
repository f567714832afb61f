"""
Search endpoint descriptions and the backend that queries them.

A SearchEndpoint is everything that differs between the customer, material,
and other lookups: the URL, the key holding the result list, the entity
model, and how an entity is shown in the dropdown.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Protocol, Tuple, Type

from pydantic import ValidationError

from ..api.client import ApiClient
from ..logging_config import get_logger
from ..models.entities import Customer, Entity, Material
from ..models.search import SearchRequest, SuggestionOption

logger = get_logger("admin_lookup.search")


def default_option(entity: Entity) -> SuggestionOption:
    return SuggestionOption(id=entity.id, label=entity.label, entity=entity)


def customer_option(customer: Customer) -> SuggestionOption:
    return SuggestionOption(
        id=customer.id,
        label=customer.customerName or "Unknown",
        entity=customer,
        secondary=customer.companyName,
        contact=customer.telephoneNumber,
    )


def material_option(material: Material) -> SuggestionOption:
    return SuggestionOption(
        id=material.id,
        label=material.label,
        entity=material,
        secondary=material.materialType,
    )


@dataclass(frozen=True)
class SearchEndpoint:
    """Parameterization of one autocomplete lookup."""

    path: str
    results_key: str
    entity_model: Type[Entity] = Entity
    to_option: Callable[[Any], SuggestionOption] = default_option
    noun: str = "results"


CUSTOMER_SEARCH = SearchEndpoint(
    path="/api/customers/search",
    results_key="customers",
    entity_model=Customer,
    to_option=customer_option,
    noun="customers",
)

MATERIAL_SEARCH = SearchEndpoint(
    path="/api/materials/search",
    results_key="materials",
    entity_model=Material,
    to_option=material_option,
    noun="materials",
)

ENDPOINTS = {
    "customers": CUSTOMER_SEARCH,
    "materials": MATERIAL_SEARCH,
}


class SearchBackend(Protocol):
    """Anything that can answer one SearchRequest."""

    async def fetch(self, request: SearchRequest) -> Tuple[List[Entity], bool]:
        ...


def parse_search_payload(endpoint: SearchEndpoint, payload: Any) -> Tuple[List[Entity], bool]:
    """
    Turn a search response body into entities and the continuation flag.

    Bodies with success=false, a missing list, or a non-dict shape are
    treated as "no results", not as errors.
    """
    if not isinstance(payload, dict) or not payload.get("success"):
        return [], False

    raw_items = payload.get(endpoint.results_key)
    if not isinstance(raw_items, list):
        return [], False

    entities: List[Entity] = []
    for item in raw_items:
        try:
            entities.append(endpoint.entity_model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {endpoint.noun} entry | error={e.errors()[:1]}")
    return entities, bool(payload.get("hasMore", False))


class EntitySearchBackend:
    """Queries GET <path>?search=&page=&size= through the REST client."""

    def __init__(self, client: ApiClient, endpoint: SearchEndpoint):
        self.client = client
        self.endpoint = endpoint

    async def fetch(self, request: SearchRequest) -> Tuple[List[Entity], bool]:
        payload = await self.client.get(self.endpoint.path, params=request.to_params())
        return parse_search_payload(self.endpoint, payload)
