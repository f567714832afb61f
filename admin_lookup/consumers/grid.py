"""
Grid side of the search box: paginated list loading and the table filter
that follows the autocomplete selection.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from ..api.client import ApiClient
from ..exceptions import ApiError
from ..logging_config import get_logger
from ..models.entities import Customer, Entity
from ..search.controller import SearchController

logger = get_logger("admin_lookup.grid")


@dataclass
class PaginationModel:
    page: int = 0
    page_size: int = 10


@dataclass
class RowsState:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0


class GridDataSource:
    """Loads one page of a list endpoint, optionally filtered by a search term."""

    def __init__(self, client: ApiClient, path: str = "/api/customers", rows_key: str = "customers"):
        self.client = client
        self.path = path
        self.rows_key = rows_key

    async def load(self, pagination: PaginationModel, search: Optional[str] = None) -> RowsState:
        """
        Fetch rows for the given page.

        Args:
            pagination: Zero-based page and page size
            search: Free-text filter; blank means unfiltered

        Returns:
            Rows plus the total row count reported by the backend

        Raises:
            ApiError: the backend rejected the request
        """
        params: Dict[str, Any] = {"page": pagination.page, "size": pagination.page_size}
        if search and search.strip():
            params["search"] = search.strip()

        payload = await self.client.get(self.path, params=params)
        if not isinstance(payload, dict):
            return RowsState()

        rows = payload.get(self.rows_key)
        if not isinstance(rows, list):
            return RowsState()
        if "success" in payload and not payload["success"]:
            return RowsState()

        return RowsState(rows=rows, row_count=payload.get("totalCount") or len(rows))


def default_filter_value(entity: Entity) -> str:
    """Text the grid is filtered by after a pick: the primary name only."""
    if isinstance(entity, Customer):
        return entity.customerName or ""
    name = getattr(entity, "name", None)
    return name if isinstance(name, str) else str(entity.id)


class GridSearchBinding:
    """
    Keeps a grid in step with its autocomplete box.

    - picking an entity filters the grid by its name and jumps to page 0
    - clearing the box (selection of None) drops the filter
    - submit() (Enter) filters by whatever was typed
    """

    def __init__(
        self,
        controller: SearchController,
        source: GridDataSource,
        pagination: Optional[PaginationModel] = None,
        filter_value: Callable[[Entity], str] = default_filter_value,
        on_rows: Optional[Callable[[RowsState], None]] = None
    ):
        self.controller = controller
        self.source = source
        self.pagination = pagination or PaginationModel()
        self.filter_value = filter_value
        self.on_rows = on_rows

        self.active_search: Optional[str] = None
        self.rows = RowsState()
        self.last_error: Optional[str] = None
        self._reload_task: Optional[asyncio.Task] = None
        self._unsubscribe = controller.on_selection(self._handle_selection)

    def _handle_selection(self, entity: Optional[Entity]) -> None:
        if entity is None:
            self.active_search = None
        else:
            self.active_search = self.filter_value(entity) or None
        self.pagination.page = 0
        self._schedule_reload()

    def submit(self) -> bool:
        """Filter the grid by the typed query. Returns False when it is too short."""
        query = self.controller.state.trimmed_query
        if len(query) < self.controller.min_query_length:
            return False
        self.active_search = query
        self.controller.dismiss()
        self.pagination.page = 0
        self._schedule_reload()
        return True

    def clear(self) -> None:
        """Empty the search box and show the unfiltered grid."""
        self.controller.on_select(None)

    async def set_page(self, page: int, page_size: Optional[int] = None) -> RowsState:
        self.pagination.page = page
        if page_size is not None:
            self.pagination.page_size = page_size
        return await self.reload()

    async def reload(self) -> RowsState:
        """Load the current page with the current filter and publish the rows."""
        self.rows = await self.source.load(self.pagination, self.active_search)
        self.last_error = None
        if self.on_rows is not None:
            self.on_rows(self.rows)
        return self.rows

    def _schedule_reload(self) -> None:
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
        self._reload_task = asyncio.get_running_loop().create_task(self._reload_logged())

    async def _reload_logged(self) -> None:
        try:
            await self.reload()
        except (ApiError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.last_error = str(e) or "Failed to load rows"
            logger.error(f"Error loading grid rows | search={self.active_search!r} | error={e}")

    async def wait_reloaded(self) -> None:
        """Wait for a reload started by a selection or submit()."""
        if self._reload_task is not None:
            await asyncio.gather(self._reload_task, return_exceptions=True)

    def close(self) -> None:
        self._unsubscribe()
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
