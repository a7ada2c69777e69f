import json

import httpx
import pytest

from storeai_core.domain.exceptions import BackendApiError, BackendNotConfiguredError, NetworkError
from storeai_core.domain.retail import InventoryItem
from storeai_core.infrastructure.backend import mock_data
from storeai_core.infrastructure.backend.client import BackendClient
from storeai_core.infrastructure.backend.retail_api import AGENT_CHAT_MOCK, RetailDataService


ENDPOINT = "https://store-api.example.com/api"
KEY = "backend-key-0123456789"


def make_service(handler, enable_mock_fallback=True):
    requests = []

    def recording(request):
        requests.append(request)
        return handler(request)

    client = BackendClient(
        ENDPOINT,
        KEY,
        enable_mock_fallback=enable_mock_fallback,
        transport=httpx.MockTransport(recording),
    )
    return RetailDataService(client), requests


async def test_live_inventory_is_parsed_from_camel_case():
    live = [item.to_payload() for item in mock_data.mock_inventory()[:2]]
    live[0]["currentStock"] = 7
    service, requests = make_service(lambda r: httpx.Response(200, json=live))

    items = await service.get_inventory()

    assert [i.product_id for i in items] == ["PROD-001", "PROD-002"]
    assert items[0].current_stock == 7
    assert isinstance(items[0], InventoryItem)
    assert str(requests[0].url) == f"{ENDPOINT}/inventory"
    assert requests[0].headers["x-api-key"] == KEY


async def test_http_error_falls_back_to_mock():
    service, _ = make_service(lambda r: httpx.Response(500))
    items = await service.get_inventory()
    assert len(items) == 5


async def test_http_error_without_fallback_raises():
    service, _ = make_service(lambda r: httpx.Response(503), enable_mock_fallback=False)
    with pytest.raises(BackendApiError) as exc:
        await service.get_pricing_recommendations()
    assert exc.value.http_status == 503
    assert exc.value.message == "API request failed: Service Unavailable"


async def test_network_error_without_fallback_raises():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    service, _ = make_service(boom, enable_mock_fallback=False)
    with pytest.raises(NetworkError):
        await service.get_operational_metrics()


async def test_network_error_with_fallback_returns_mock():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    service, _ = make_service(boom)
    metrics = await service.get_operational_metrics()
    assert metrics["stockouts"].value == 3


@pytest.mark.parametrize(
    "endpoint,key",
    [
        (None, KEY),
        (ENDPOINT, None),
        ("https://your-api-endpoint.azurewebsites.net/api", KEY),
    ],
)
async def test_unconfigured_backend_uses_mock(endpoint, key):
    def fail(request):
        raise AssertionError("no request expected")

    client = BackendClient(endpoint, key, transport=httpx.MockTransport(fail))
    assert client.configured is False
    shifts = await RetailDataService(client).get_shifts()
    assert len(shifts) == 4


async def test_html_body_on_success_falls_back_to_mock():
    service, _ = make_service(lambda r: httpx.Response(200, text="<html>gateway</html>"))
    items = await service.get_inventory()
    assert [i.product_id for i in items] == [i.product_id for i in mock_data.mock_inventory()]


async def test_html_body_without_fallback_raises():
    service, _ = make_service(lambda r: httpx.Response(200, text="<html>gateway</html>"), enable_mock_fallback=False)
    with pytest.raises(BackendApiError) as exc:
        await service.get_inventory()
    assert exc.value.code == "BACKEND_INVALID_RESPONSE"


async def test_redirect_falls_back_to_mock():
    service, requests = make_service(lambda r: httpx.Response(302, headers={"location": "/login"}))
    items = await service.get_inventory()
    assert len(items) == 5
    assert len(requests) == 1


async def test_redirect_without_fallback_raises():
    service, _ = make_service(lambda r: httpx.Response(302, headers={"location": "/login"}), enable_mock_fallback=False)
    with pytest.raises(BackendApiError) as exc:
        await service.get_inventory()
    assert exc.value.http_status == 302


async def test_unconfigured_backend_without_mock_raises():
    service = RetailDataService(BackendClient(None, None))
    with pytest.raises(BackendNotConfiguredError):
        await service.delete_inventory_item("PROD-001")


async def test_shift_and_forecast_pass_date_param():
    service, requests = make_service(lambda r: httpx.Response(200, json=[]))
    await service.get_shifts("2026-10-19")
    await service.get_hourly_forecast("2026-10-19")
    assert requests[0].url.path == "/api/workforce/shifts"
    assert requests[0].url.params["date"] == "2026-10-19"
    assert requests[1].url.path == "/api/workforce/forecast"


async def test_update_event_status_sends_patch():
    def handler(request):
        body = json.loads(request.content)
        event = mock_data.mock_shrinkage_events()[1].to_payload()
        event["status"] = body["status"]
        return httpx.Response(200, json=event)

    service, requests = make_service(handler)
    event = await service.update_event_status("SHRINK-002", "resolved")
    assert requests[0].method == "PATCH"
    assert requests[0].url.path == "/api/loss-prevention/events/SHRINK-002"
    assert event.status == "resolved"


async def test_apply_price_change_payload():
    service, requests = make_service(lambda r: httpx.Response(200, json={"success": True, "message": "ok"}))
    result = await service.apply_price_change("PROD-006", 11.99)
    assert result.success is True
    assert json.loads(requests[0].content) == {"productId": "PROD-006", "newPrice": 11.99}


async def test_update_inventory_item_sends_camel_case_changes():
    def handler(request):
        item = mock_data.mock_inventory()[0].to_payload()
        item.update(json.loads(request.content))
        return httpx.Response(200, json=item)

    service, requests = make_service(handler)
    item = await service.update_inventory_item("PROD-001", {"current_stock": 90})
    assert requests[0].method == "PUT"
    assert json.loads(requests[0].content) == {"currentStock": 90}
    assert item.current_stock == 90


async def test_create_shift_mock_gets_generated_id():
    service = RetailDataService(BackendClient(None, None))
    shift = await service.create_shift(
        {
            "employee_id": "EMP-009",
            "employee_name": "Ana Lopez",
            "role": "Cashier",
            "date": "2026-10-19",
            "start_time": "10:00",
            "end_time": "18:00",
            "hours": 8,
        }
    )
    assert shift.shift_id.startswith("SHIFT-")
    assert shift.employee_name == "Ana Lopez"


async def test_agent_chat_mock_and_live():
    mocked = await RetailDataService(BackendClient(None, None)).agent_chat([])
    assert mocked.response == AGENT_CHAT_MOCK

    service, requests = make_service(lambda r: httpx.Response(200, json={"response": "Restock bread", "data": {"n": 1}}))
    reply = await service.agent_chat([{"role": "user", "content": "stock?"}])
    assert reply.response == "Restock bread"
    assert json.loads(requests[0].content) == {"messages": [{"role": "user", "content": "stock?"}]}
