"""
Autocomplete search for the admin screens.

SearchController: debounced, cancelable, cached lookups for one input box
SearchEndpoint: what differs between the customer, material, ... lookups
"""

from .cache import SearchCache
from .controller import SearchController
from .debounce import Debouncer
from .endpoints import (
    CUSTOMER_SEARCH,
    ENDPOINTS,
    MATERIAL_SEARCH,
    EntitySearchBackend,
    SearchBackend,
    SearchEndpoint,
)

__all__ = [
    "SearchCache",
    "SearchController",
    "Debouncer",
    "SearchEndpoint",
    "SearchBackend",
    "EntitySearchBackend",
    "CUSTOMER_SEARCH",
    "MATERIAL_SEARCH",
    "ENDPOINTS",
]
