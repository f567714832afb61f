"""Tests for the grid binding and the customer price book."""

from unittest.mock import AsyncMock

import pytest

from conftest import customers

from admin_lookup.consumers.grid import GridDataSource, GridSearchBinding, PaginationModel
from admin_lookup.consumers.pricing import CustomerPriceBook, round_half_up
from admin_lookup.exceptions import ApiError
from admin_lookup.models.entities import Material
from admin_lookup.models.search import ControllerStatus

GRID_PAGE = {
    "success": True,
    "customers": [{"id": 1, "customerName": "Acme Co"}, {"id": 2, "customerName": "Acme Corporation"}],
    "totalCount": 42,
}


def mock_client(payload=None) -> AsyncMock:
    client = AsyncMock()
    client.get.return_value = payload
    return client


class TestGridDataSource:

    @pytest.mark.asyncio
    async def test_load_page_with_search(self):
        client = mock_client(GRID_PAGE)
        source = GridDataSource(client)

        rows = await source.load(PaginationModel(page=2, page_size=25), search="  acme ")

        client.get.assert_awaited_once_with("/api/customers", params={"page": 2, "size": 25, "search": "acme"})
        assert rows.row_count == 42
        assert len(rows.rows) == 2

    @pytest.mark.asyncio
    async def test_blank_search_is_unfiltered(self):
        client = mock_client({"success": True, "customers": [{"id": 1}]})

        rows = await GridDataSource(client).load(PaginationModel(), search="   ")

        client.get.assert_awaited_once_with("/api/customers", params={"page": 0, "size": 10})
        assert rows.row_count == 1

    @pytest.mark.asyncio
    async def test_unusable_payloads_give_empty_rows(self):
        for payload in [None, "oops", {"success": True}, {"success": False, "customers": [{"id": 1}]}]:
            rows = await GridDataSource(mock_client(payload)).load(PaginationModel())
            assert rows.rows == []
            assert rows.row_count == 0


class TestGridSearchBinding:

    @pytest.mark.asyncio
    async def test_selection_filters_grid_from_first_page(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(GRID_PAGE)
        published = []
        binding = GridSearchBinding(
            controller,
            GridDataSource(client),
            pagination=PaginationModel(page=3),
            on_rows=published.append,
        )

        controller.on_select(customers("Acme Co")[0])
        await binding.wait_reloaded()

        assert binding.active_search == "Acme Co"
        assert binding.pagination.page == 0
        client.get.assert_awaited_with("/api/customers", params={"page": 0, "size": 10, "search": "Acme Co"})
        assert published[-1].row_count == 42
        assert controller.state.query == "Acme Co"
        binding.close()

    @pytest.mark.asyncio
    async def test_submit_uses_typed_query_and_closes_dropdown(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(GRID_PAGE)
        binding = GridSearchBinding(controller, GridDataSource(client))

        controller.on_query_changed("acme ")
        assert binding.submit() is True
        await binding.wait_reloaded()
        await controller.settle()

        assert binding.active_search == "acme"
        assert backend.requests == []
        assert controller.state.query == "acme "
        assert controller.state.options == ()
        assert controller.state.status is ControllerStatus.IDLE
        client.get.assert_awaited_with("/api/customers", params={"page": 0, "size": 10, "search": "acme"})
        binding.close()

    @pytest.mark.asyncio
    async def test_submit_ignores_short_query(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(GRID_PAGE)
        binding = GridSearchBinding(controller, GridDataSource(client))

        controller.on_query_changed("a")

        assert binding.submit() is False
        assert binding.active_search is None
        client.get.assert_not_awaited()
        binding.close()

    @pytest.mark.asyncio
    async def test_clear_drops_filter(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(GRID_PAGE)
        binding = GridSearchBinding(controller, GridDataSource(client))
        binding.active_search = "Acme Co"

        binding.clear()
        await binding.wait_reloaded()

        assert binding.active_search is None
        assert controller.state.query == ""
        client.get.assert_awaited_with("/api/customers", params={"page": 0, "size": 10})
        binding.close()

    @pytest.mark.asyncio
    async def test_reload_failure_is_recorded(self, backend, make_controller):
        controller = make_controller(backend)
        client = AsyncMock()
        client.get.side_effect = ApiError("HTTP 500: db down", status=500)
        binding = GridSearchBinding(controller, GridDataSource(client))

        controller.on_select(customers("Acme Co")[0])
        await binding.wait_reloaded()

        assert binding.last_error == "HTTP 500: db down"
        assert binding.rows.rows == []
        binding.close()

    @pytest.mark.asyncio
    async def test_set_page_keeps_filter(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(GRID_PAGE)
        binding = GridSearchBinding(controller, GridDataSource(client))
        binding.active_search = "acme"

        await binding.set_page(4, page_size=20)

        client.get.assert_awaited_with("/api/customers", params={"page": 4, "size": 20, "search": "acme"})
        binding.close()


PRICE_RESPONSE = {
    "success": True,
    "data": {
        "materials": [
            {"materialId": 7, "customerPrice": 900},
            {"materialId": "8", "customerPrice": -5},
            {"customerPrice": 10},
        ]
    },
}


class TestCustomerPriceBook:

    def test_round_half_up(self):
        assert round_half_up(949.5) == 950
        assert round_half_up(949.49) == 949
        assert round_half_up(0.5) == 1

    @pytest.mark.asyncio
    async def test_load_keeps_valid_prices(self):
        client = mock_client(PRICE_RESPONSE)
        book = CustomerPriceBook(client)

        prices = await book.load(12)

        client.get.assert_awaited_once_with("/api/customers/12/materials")
        assert prices == {"7": 900}
        assert book.customer_id == 12
        assert book.is_loading is False

    @pytest.mark.asyncio
    async def test_labels_prefer_customer_price(self):
        book = CustomerPriceBook(mock_client(PRICE_RESPONSE))
        await book.load(12)

        cement = Material(id=7, name="Cement", unitPrice=949.5)
        sand = Material(id=9, name="Sand", unitPrice=120.4)

        assert book.label(cement) == "Cement - Customer Price: PKR 900"
        assert book.label(sand) == "Sand - Default Price: PKR 120"
        assert book.unit_price(cement) == 900
        assert book.unit_price(sand) == 120

        book.prices = {"7": 1234567.0, "9": 950.5}

        assert book.label(cement) == "Cement - Customer Price: PKR 1234567"
        assert book.label(sand) == "Sand - Customer Price: PKR 950.5"

    @pytest.mark.asyncio
    async def test_load_failure_leaves_empty_list(self):
        client = AsyncMock()
        client.get.side_effect = ApiError("HTTP 404: not found", status=404)
        book = CustomerPriceBook(client)

        assert await book.load(12) == {}
        assert book.label(Material(id=7, name="Cement", unitPrice=949.5)) == "Cement - Default Price: PKR 950"

    @pytest.mark.asyncio
    async def test_unsuccessful_response_gives_no_prices(self):
        book = CustomerPriceBook(mock_client({"success": False, "message": "not found"}))
        assert await book.load(12) == {}

    @pytest.mark.asyncio
    async def test_follows_customer_selection(self, backend, make_controller):
        controller = make_controller(backend)
        client = mock_client(PRICE_RESPONSE)
        book = CustomerPriceBook(client)
        book.bind(controller)

        controller.on_select(customers("Acme Co", start=12)[0])
        await book.wait_loaded()

        assert book.customer_id == 12
        assert book.price_for(7) == 900

        controller.on_select(None)

        assert book.customer_id is None
        assert book.prices == {}
        book.close()
