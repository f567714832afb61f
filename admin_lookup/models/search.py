"""
Search request/response types and the state snapshot the controller publishes.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .entities import Entity, EntityId


class SearchRequest(BaseModel):
    """One network call: immutable once issued."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    page: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, ge=1)

    def to_params(self) -> Dict[str, Any]:
        return {"search": self.query, "page": self.page, "size": self.page_size}


class ResultSource(str, Enum):
    """Where a SearchResult came from."""

    NETWORK = "network"
    CACHE = "cache"
    ABORTED = "aborted"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SearchResult:
    """Entities for one page plus the continuation flag."""

    results: Tuple[Entity, ...] = ()
    has_more: bool = False
    source: ResultSource = ResultSource.NETWORK

    def with_source(self, source: ResultSource) -> "SearchResult":
        return replace(self, source=source)


@dataclass(frozen=True)
class SuggestionOption:
    """Dropdown row built from an entity."""

    id: EntityId
    label: str
    entity: Entity
    secondary: Optional[str] = None
    contact: Optional[str] = None


class ControllerStatus(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    RESOLVED = "resolved"
    ERROR = "error"


class NoOptionsReason(str, Enum):
    """Why the dropdown is empty; each maps to its own message."""

    BELOW_THRESHOLD = "below_threshold"
    LOADING = "loading"
    NO_RESULTS = "no_results"


@dataclass(frozen=True)
class SearchState:
    """Snapshot of everything a view needs to render one autocomplete box."""

    query: str = ""
    options: Tuple[SuggestionOption, ...] = ()
    is_loading: bool = False
    has_more: bool = False
    page: int = 0
    status: ControllerStatus = ControllerStatus.IDLE
    min_query_length: int = 2
    noun: str = "results"
    messages: Dict[NoOptionsReason, str] = field(default_factory=dict, compare=False)

    @property
    def trimmed_query(self) -> str:
        return self.query.strip()

    @property
    def no_options_reason(self) -> NoOptionsReason:
        if len(self.trimmed_query) < self.min_query_length:
            return NoOptionsReason.BELOW_THRESHOLD
        if self.is_loading:
            return NoOptionsReason.LOADING
        return NoOptionsReason.NO_RESULTS

    @property
    def no_options_text(self) -> str:
        reason = self.no_options_reason
        if reason in self.messages:
            return self.messages[reason]
        if reason is NoOptionsReason.BELOW_THRESHOLD:
            return f"Type at least {self.min_query_length} characters to search"
        if reason is NoOptionsReason.LOADING:
            return f"Searching {self.noun}..."
        return f"No {self.noun} found"

    def evolve(self, **changes: Any) -> "SearchState":
        return replace(self, **changes)
