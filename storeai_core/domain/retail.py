"""门店后端 API 返回的零售数据结构。

后端 JSON 使用 camelCase 字段，这里通过 alias_generator 映射为
Python 风格属性名；populate_by_name 允许在代码中（如 mock 数据）
直接使用 snake_case 构造。
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RetailModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


StockStatus = Literal["optimal", "low", "critical", "overstock"]
CoverageStatus = Literal["adequate", "understaffed", "overstaffed"]
Urgency = Literal["high", "medium", "low"]


class Store(RetailModel):
    store_id: str
    store_number: str
    name: str
    region: str


class AIInsights(RetailModel):
    stock_status: StockStatus
    days_until_stockout: Optional[float] = None
    recommended_order_quantity: int
    confidence: float
    reasoning: str


class InventoryItem(RetailModel):
    product_id: str
    product_name: str
    category: str
    current_stock: float
    unit_of_measure: str
    reorder_point: float
    optimal_stock: float
    ai_insights: AIInsights
    last_updated: str

    @property
    def needs_attention(self) -> bool:
        return self.ai_insights.stock_status in ("low", "critical")


class DataPoint(RetailModel):
    date: str
    value: float


class ForecastPoint(DataPoint):
    predicted_value: float
    confidence_lower: float
    confidence_upper: float


class DemandForecast(RetailModel):
    product_id: str
    product_name: str
    historical_sales: List[DataPoint]
    forecast: List[ForecastPoint]


class Shift(RetailModel):
    shift_id: str
    employee_id: str
    employee_name: str
    role: str
    date: str
    start_time: str
    end_time: str
    hours: float


class HourlyForecast(RetailModel):
    hour: int
    predicted_customers: int
    predicted_transactions: int
    recommended_staff_count: int
    currently_scheduled: int
    coverage_status: CoverageStatus


class PricingFactors(RetailModel):
    inventory_age: float
    current_velocity: float
    demand_trend: Literal["increasing", "stable", "decreasing"]
    expiration_date: Optional[str] = None


class PricingReasoning(RetailModel):
    primary: str
    factors: PricingFactors


class PricingImpact(RetailModel):
    revenue_change: float
    units_change: float
    margin_change: float
    waste_reduction: float


class PricingRecommendation(RetailModel):
    product_id: str
    product_name: str
    category: str
    current_price: float
    recommended_price: float
    price_change_percent: float
    reasoning: PricingReasoning
    projected_impact: PricingImpact
    confidence: float
    urgency: Urgency


class PlacementImpact(RetailModel):
    sales_increase: float
    basket_size_increase: float
    clv_impact: float


class PlacementRecommendation(RetailModel):
    recommendation_id: str
    type: Literal["move_product", "cross_promote", "end_cap_display"]
    product_id: str
    product_name: str
    current_location: str
    suggested_location: str
    reasoning: str
    projected_impact: PlacementImpact
    confidence: float


ShrinkageStatus = Literal["investigating", "resolved", "false_positive"]


class ShrinkageEvent(RetailModel):
    event_id: str
    detected_at: str
    event_type: Literal["anomaly", "inventory_variance", "price_discrepancy"]
    product_name: str
    estimated_loss: float
    status: ShrinkageStatus


class MetricCard(RetailModel):
    label: str
    value: Union[str, int, float]
    change: Optional[float] = None
    change_label: Optional[str] = None
    trend: Optional[Literal["up", "down", "stable"]] = None
    status: Optional[Literal["success", "warning", "critical"]] = None


class ActionResult(RetailModel):
    success: bool
    message: str


class AgentChatReply(RetailModel):
    """内部 Agent 接口 /ai/chat 的响应。"""

    response: str
    data: Optional[Any] = Field(default=None)
