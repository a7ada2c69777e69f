"""零售数据访问层（Domain Data Accessors）。

每个方法对应门店后端的一个接口，返回解析后的 pydantic 模型；
后端不可用时由 BackendClient 回退到 mock_data 中的同名数据。
"""

import time
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter
from pydantic.alias_generators import to_camel

from storeai_core.domain.retail import (
    ActionResult,
    AgentChatReply,
    DemandForecast,
    HourlyForecast,
    InventoryItem,
    MetricCard,
    PlacementRecommendation,
    PricingRecommendation,
    ShrinkageEvent,
    ShrinkageStatus,
    Shift,
    Store,
)
from storeai_core.infrastructure.backend import mock_data
from storeai_core.infrastructure.backend.client import API_ENDPOINTS, BackendClient


AGENT_QUERY_MOCK = "AI agent response (mock data - configure Azure AI endpoint)"
AGENT_CHAT_MOCK = "AI chat response (mock data - configure Azure AI endpoint)"


@lru_cache(maxsize=None)
def _adapter(tp) -> TypeAdapter:
    return TypeAdapter(tp)


def _parse(tp, data: Any):
    return _adapter(tp).validate_python(data)


def _camel_payload(changes: Dict[str, Any]) -> Dict[str, Any]:
    return {to_camel(k): v for k, v in changes.items()}


def _date_params(date: Optional[str]) -> Optional[Dict[str, str]]:
    return {"date": date} if date else None


class RetailDataService:
    """门店数据的类型化访问入口，供上下文汇总与会话服务使用。"""

    def __init__(self, client: BackendClient):
        self._client = client

    # ---- store ----

    async def get_store_info(self) -> Store:
        data = await self._client.fetch(API_ENDPOINTS["store"]["get_info"], mock=mock_data.mock_store())
        return _parse(Store, data)

    # ---- inventory ----

    async def get_inventory(self) -> List[InventoryItem]:
        data = await self._client.fetch(API_ENDPOINTS["inventory"]["get_all"], mock=mock_data.mock_inventory())
        return _parse(List[InventoryItem], data)

    async def get_inventory_item(self, product_id: str) -> InventoryItem:
        path = API_ENDPOINTS["inventory"]["get_by_id"].format(id=product_id)
        mock = next((i for i in mock_data.mock_inventory() if i.product_id == product_id), None)
        data = await self._client.fetch(path, mock=mock)
        return _parse(InventoryItem, data)

    async def update_inventory_item(self, product_id: str, changes: Dict[str, Any]) -> InventoryItem:
        path = API_ENDPOINTS["inventory"]["update"].format(id=product_id)
        mock = mock_data.mock_inventory()[0].model_copy(update=changes)
        data = await self._client.fetch(path, method="PUT", payload=_camel_payload(changes), mock=mock)
        return _parse(InventoryItem, data)

    async def create_inventory_item(self, fields: Dict[str, Any]) -> InventoryItem:
        mock = InventoryItem.model_validate({"product_id": f"PROD-{int(time.time() * 1000)}", **fields})
        payload = mock.to_payload()
        payload.pop("productId", None)
        data = await self._client.fetch(API_ENDPOINTS["inventory"]["create"], method="POST", payload=payload, mock=mock)
        return _parse(InventoryItem, data)

    async def delete_inventory_item(self, product_id: str) -> None:
        path = API_ENDPOINTS["inventory"]["delete"].format(id=product_id)
        await self._client.fetch(path, method="DELETE")

    # ---- demand forecast ----

    async def get_demand_forecasts(self) -> List[DemandForecast]:
        data = await self._client.fetch(
            API_ENDPOINTS["demand_forecast"]["get_all"],
            mock=mock_data.mock_demand_forecasts(),
        )
        return _parse(List[DemandForecast], data)

    async def get_demand_forecast(self, product_id: str) -> DemandForecast:
        path = API_ENDPOINTS["demand_forecast"]["get_by_product"].format(product_id=product_id)
        mock = next((f for f in mock_data.mock_demand_forecasts() if f.product_id == product_id), None)
        data = await self._client.fetch(path, mock=mock)
        return _parse(DemandForecast, data)

    # ---- workforce ----

    async def get_shifts(self, date: Optional[str] = None) -> List[Shift]:
        data = await self._client.fetch(
            API_ENDPOINTS["workforce"]["get_shifts"],
            params=_date_params(date),
            mock=mock_data.mock_shifts(),
        )
        return _parse(List[Shift], data)

    async def get_hourly_forecast(self, date: Optional[str] = None) -> List[HourlyForecast]:
        data = await self._client.fetch(
            API_ENDPOINTS["workforce"]["get_hourly_forecast"],
            params=_date_params(date),
            mock=mock_data.mock_hourly_forecasts(),
        )
        return _parse(List[HourlyForecast], data)

    async def create_shift(self, fields: Dict[str, Any]) -> Shift:
        mock = Shift.model_validate({"shift_id": f"SHIFT-{int(time.time() * 1000)}", **fields})
        payload = mock.to_payload()
        payload.pop("shiftId", None)
        data = await self._client.fetch(
            API_ENDPOINTS["workforce"]["create_shift"], method="POST", payload=payload, mock=mock
        )
        return _parse(Shift, data)

    async def update_shift(self, shift_id: str, changes: Dict[str, Any]) -> Shift:
        path = API_ENDPOINTS["workforce"]["update_shift"].format(id=shift_id)
        mock = mock_data.mock_shifts()[0].model_copy(update=changes)
        data = await self._client.fetch(path, method="PUT", payload=_camel_payload(changes), mock=mock)
        return _parse(Shift, data)

    async def delete_shift(self, shift_id: str) -> None:
        path = API_ENDPOINTS["workforce"]["delete_shift"].format(id=shift_id)
        await self._client.fetch(path, method="DELETE")

    # ---- pricing ----

    async def get_pricing_recommendations(self) -> List[PricingRecommendation]:
        data = await self._client.fetch(
            API_ENDPOINTS["pricing"]["get_recommendations"],
            mock=mock_data.mock_pricing_recommendations(),
        )
        return _parse(List[PricingRecommendation], data)

    async def apply_price_change(self, product_id: str, new_price: float) -> ActionResult:
        data = await self._client.fetch(
            API_ENDPOINTS["pricing"]["apply_price_change"],
            method="POST",
            payload={"productId": product_id, "newPrice": new_price},
            mock=ActionResult(success=True, message="Price updated successfully"),
        )
        return _parse(ActionResult, data)

    # ---- placement ----

    async def get_placement_recommendations(self) -> List[PlacementRecommendation]:
        data = await self._client.fetch(
            API_ENDPOINTS["placement"]["get_recommendations"],
            mock=mock_data.mock_placement_recommendations(),
        )
        return _parse(List[PlacementRecommendation], data)

    async def apply_placement(self, recommendation_id: str) -> ActionResult:
        data = await self._client.fetch(
            API_ENDPOINTS["placement"]["apply_placement"],
            method="POST",
            payload={"recommendationId": recommendation_id},
            mock=ActionResult(success=True, message="Placement recommendation applied successfully"),
        )
        return _parse(ActionResult, data)

    # ---- loss prevention ----

    async def get_shrinkage_events(self) -> List[ShrinkageEvent]:
        data = await self._client.fetch(
            API_ENDPOINTS["loss_prevention"]["get_shrinkage_events"],
            mock=mock_data.mock_shrinkage_events(),
        )
        return _parse(List[ShrinkageEvent], data)

    async def update_event_status(self, event_id: str, status: ShrinkageStatus) -> ShrinkageEvent:
        path = API_ENDPOINTS["loss_prevention"]["update_event_status"].format(id=event_id)
        mock = mock_data.mock_shrinkage_events()[0].model_copy(update={"event_id": event_id, "status": status})
        data = await self._client.fetch(path, method="PATCH", payload={"status": status}, mock=mock)
        return _parse(ShrinkageEvent, data)

    # ---- metrics ----

    async def get_operational_metrics(self) -> Dict[str, MetricCard]:
        data = await self._client.fetch(
            API_ENDPOINTS["metrics"]["get_operational"],
            mock=mock_data.mock_operational_metrics(),
        )
        return _parse(Dict[str, MetricCard], data)

    # ---- ai agent ----

    async def agent_query(self, query: str, context: Optional[Dict[str, Any]] = None) -> str:
        data = await self._client.fetch(
            API_ENDPOINTS["ai_agent"]["query"],
            method="POST",
            payload={"query": query, "context": context},
            mock=AGENT_QUERY_MOCK,
        )
        return str(data)

    async def agent_chat(self, messages: List[Dict[str, str]]) -> AgentChatReply:
        data = await self._client.fetch(
            API_ENDPOINTS["ai_agent"]["chat"],
            method="POST",
            payload={"messages": messages},
            mock=AgentChatReply(response=AGENT_CHAT_MOCK, data=None),
        )
        return _parse(AgentChatReply, data)
