"""门店后端不可用时使用的 mock 数据。

日期相关字段按调用时刻生成，所以这里都是函数而不是模块级常量。
"""

import math
import random
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List

from storeai_core.domain.retail import (
    AIInsights,
    DataPoint,
    DemandForecast,
    ForecastPoint,
    HourlyForecast,
    InventoryItem,
    MetricCard,
    PlacementImpact,
    PlacementRecommendation,
    PricingFactors,
    PricingImpact,
    PricingReasoning,
    PricingRecommendation,
    ShrinkageEvent,
    Shift,
    Store,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def _today() -> str:
    return date.today().isoformat()


def mock_store() -> Store:
    return Store(store_id="STORE-001", store_number="4521", name="Downtown Market", region="Northeast")


def _item(pid, name, category, stock, unit, reorder, optimal, status, days, qty, confidence, reasoning) -> InventoryItem:
    return InventoryItem(
        product_id=pid,
        product_name=name,
        category=category,
        current_stock=stock,
        unit_of_measure=unit,
        reorder_point=reorder,
        optimal_stock=optimal,
        ai_insights=AIInsights(
            stock_status=status,
            days_until_stockout=days,
            recommended_order_quantity=qty,
            confidence=confidence,
            reasoning=reasoning,
        ),
        last_updated=_iso(_now()),
    )


def mock_inventory() -> List[InventoryItem]:
    return [
        _item(
            "PROD-001", "Organic Milk 1 Gallon", "Dairy", 45, "gallon", 50, 120, "low", 4.5, 75, 0.87,
            "Low stock: 4.5 days remaining. Average daily sales: 10.0 units. Recommend ordering 75 units.",
        ),
        _item(
            "PROD-002", "Fresh Bread - Whole Wheat", "Bakery", 12, "loaf", 30, 80, "critical", 1.2, 68, 0.92,
            "URGENT: Only 1.2 days of stock remaining at current sales velocity of 10.0 units/day. "
            "Recommend immediate order of 68 units.",
        ),
        _item(
            "PROD-003", "Bananas - Organic", "Produce", 156, "lb", 100, 200, "optimal", 7.8, 44, 0.85,
            "Stock levels optimal. Current inventory supports 8 days of sales.",
        ),
        _item(
            "PROD-004", "Ground Beef 80/20", "Meat", 234, "lb", 80, 150, "overstock", 39, 0, 0.79,
            "Overstock detected: 39 days of inventory. Consider promotional pricing to accelerate sales.",
        ),
        _item(
            "PROD-005", "Cheddar Cheese 8oz", "Dairy", 78, "unit", 60, 140, "optimal", 9.8, 62, 0.91,
            "Stock levels optimal. Current inventory supports 10 days of sales.",
        ),
    ]


def _sales_history(days: int, base: float, variance: float) -> List[DataPoint]:
    start = date.today() - timedelta(days=days - 1)
    return [
        DataPoint(
            date=(start + timedelta(days=i)).isoformat(),
            value=math.floor(base + (random.random() - 0.5) * variance),
        )
        for i in range(days)
    ]


def _forecast(base: float, amplitude: float, band: float) -> List[ForecastPoint]:
    points = []
    for i in range(14):
        predicted = base + math.sin(i / 7 * math.pi) * amplitude
        points.append(
            ForecastPoint(
                date=(date.today() + timedelta(days=i)).isoformat(),
                value=0,
                predicted_value=predicted,
                confidence_lower=predicted * (1 - band),
                confidence_upper=predicted * (1 + band),
            )
        )
    return points


def mock_demand_forecasts() -> List[DemandForecast]:
    return [
        DemandForecast(
            product_id="PROD-001",
            product_name="Organic Milk 1 Gallon",
            historical_sales=_sales_history(30, 10, 4),
            forecast=_forecast(10, 2, 0.2),
        ),
        DemandForecast(
            product_id="PROD-002",
            product_name="Fresh Bread - Whole Wheat",
            historical_sales=_sales_history(30, 12, 5),
            forecast=_forecast(12, 3, 0.25),
        ),
    ]


def mock_hourly_forecasts() -> List[HourlyForecast]:
    items = []
    for hour in range(24):
        if hour < 8 or hour > 21:
            customers, scheduled = 5, 1
        elif 9 <= hour <= 11:
            customers, scheduled = 80, 2
        elif 17 <= hour <= 19:
            customers, scheduled = 120, 3
        else:
            customers, scheduled = 45, 2
        recommended = math.ceil(customers / 30)
        if scheduled < recommended:
            coverage = "understaffed"
        elif scheduled > recommended:
            coverage = "overstaffed"
        else:
            coverage = "adequate"
        items.append(
            HourlyForecast(
                hour=hour,
                predicted_customers=customers,
                predicted_transactions=math.floor(customers * 0.7),
                recommended_staff_count=recommended,
                currently_scheduled=scheduled,
                coverage_status=coverage,
            )
        )
    return items


def mock_shifts() -> List[Shift]:
    today = _today()
    rows = [
        ("SHIFT-001", "EMP-001", "Sarah Johnson", "Cashier", "09:00", "17:00"),
        ("SHIFT-002", "EMP-002", "Mike Chen", "Stocker", "06:00", "14:00"),
        ("SHIFT-003", "EMP-003", "Emily Rodriguez", "Manager", "08:00", "16:00"),
        ("SHIFT-004", "EMP-004", "David Kim", "Cashier", "13:00", "21:00"),
    ]
    return [
        Shift(
            shift_id=sid,
            employee_id=eid,
            employee_name=name,
            role=role,
            date=today,
            start_time=start,
            end_time=end,
            hours=8,
        )
        for sid, eid, name, role, start, end in rows
    ]


def mock_pricing_recommendations() -> List[PricingRecommendation]:
    now = _now()
    return [
        PricingRecommendation(
            product_id="PROD-006",
            product_name="Fresh Salmon Fillet",
            category="Seafood",
            current_price=14.99,
            recommended_price=11.99,
            price_change_percent=-20,
            reasoning=PricingReasoning(
                primary="2 days to expiration - recommend 20% markdown to move inventory",
                factors=PricingFactors(
                    inventory_age=5,
                    current_velocity=3.2,
                    demand_trend="stable",
                    expiration_date=_iso(now + timedelta(days=2)),
                ),
            ),
            projected_impact=PricingImpact(revenue_change=240, units_change=32, margin_change=-3.2, waste_reduction=8.5),
            confidence=0.89,
            urgency="high",
        ),
        PricingRecommendation(
            product_id="PROD-007",
            product_name="Strawberries 1lb",
            category="Produce",
            current_price=4.99,
            recommended_price=3.99,
            price_change_percent=-20,
            reasoning=PricingReasoning(
                primary="3 days to expiration - recommend 20% markdown",
                factors=PricingFactors(
                    inventory_age=4,
                    current_velocity=8.5,
                    demand_trend="stable",
                    expiration_date=_iso(now + timedelta(days=3)),
                ),
            ),
            projected_impact=PricingImpact(revenue_change=180, units_change=65, margin_change=-2.8, waste_reduction=12.3),
            confidence=0.92,
            urgency="high",
        ),
        PricingRecommendation(
            product_id="PROD-004",
            product_name="Ground Beef 80/20",
            category="Meat",
            current_price=6.99,
            recommended_price=5.99,
            price_change_percent=-14,
            reasoning=PricingReasoning(
                primary="39 days of stock - recommend 14% markdown to accelerate sales",
                factors=PricingFactors(inventory_age=12, current_velocity=6.0, demand_trend="decreasing"),
            ),
            projected_impact=PricingImpact(revenue_change=420, units_change=95, margin_change=-1.5, waste_reduction=0),
            confidence=0.78,
            urgency="medium",
        ),
    ]


def mock_placement_recommendations() -> List[PlacementRecommendation]:
    return [
        PlacementRecommendation(
            recommendation_id="REC-001",
            type="cross_promote",
            product_id="PROD-008",
            product_name="Pasta Sauce",
            current_location="Aisle 4 - Canned Goods",
            suggested_location="Near Pasta (Aisle 3)",
            reasoning="Frequently bought with pasta (lift: 3.2). 68% of pasta purchases include sauce.",
            projected_impact=PlacementImpact(sales_increase=18.5, basket_size_increase=4.2, clv_impact=2.8),
            confidence=0.91,
        ),
        PlacementRecommendation(
            recommendation_id="REC-002",
            type="end_cap_display",
            product_id="PROD-009",
            product_name="Craft Beer Variety Pack",
            current_location="Aisle 8 - Beer",
            suggested_location="End Cap Display - Front of Store",
            reasoning="High margin item with strong weekend demand. End cap placement increases visibility.",
            projected_impact=PlacementImpact(sales_increase=32.0, basket_size_increase=8.5, clv_impact=5.2),
            confidence=0.85,
        ),
        PlacementRecommendation(
            recommendation_id="REC-003",
            type="move_product",
            product_id="PROD-010",
            product_name="Coffee Beans - Premium",
            current_location="Aisle 2 - Bottom Shelf",
            suggested_location="Aisle 2 - Eye Level",
            reasoning="Premium product underperforming due to poor visibility. Eye level placement increases conversion.",
            projected_impact=PlacementImpact(sales_increase=24.0, basket_size_increase=3.1, clv_impact=4.5),
            confidence=0.87,
        ),
    ]


def mock_shrinkage_events() -> List[ShrinkageEvent]:
    now = _now()
    return [
        ShrinkageEvent(
            event_id="SHRINK-001",
            detected_at=_iso(now - timedelta(hours=2)),
            event_type="anomaly",
            product_name="Premium Steaks",
            estimated_loss=245.80,
            status="investigating",
        ),
        ShrinkageEvent(
            event_id="SHRINK-002",
            detected_at=_iso(now - timedelta(hours=5)),
            event_type="inventory_variance",
            product_name="Wine - Red Blend",
            estimated_loss=89.94,
            status="investigating",
        ),
        ShrinkageEvent(
            event_id="SHRINK-003",
            detected_at=_iso(now - timedelta(hours=24)),
            event_type="price_discrepancy",
            product_name="Organic Chicken",
            estimated_loss=34.50,
            status="resolved",
        ),
    ]


def mock_operational_metrics() -> Dict[str, MetricCard]:
    return {
        "clv": MetricCard(label="Customer Lifetime Value", value="$2,847", change=12.3,
                          change_label="vs last quarter", trend="up", status="success"),
        "revenue": MetricCard(label="Revenue (Today)", value="$18,245", change=8.2,
                              change_label="vs yesterday", trend="up"),
        "basketSize": MetricCard(label="Avg Basket Size", value="$47.32", change=5.8,
                                 change_label="vs last week", trend="up"),
        "churnRisk": MetricCard(label="High Churn Risk Customers", value=127, change=-15.2,
                                change_label="vs last month", trend="down", status="success"),
        "stockouts": MetricCard(label="Active Stockouts", value=3, change=-40,
                                change_label="vs last week", trend="down", status="warning"),
        "waste": MetricCard(label="Waste Rate", value="2.4%", change=-18.5,
                            change_label="vs last month", trend="down", status="success"),
        "laborCost": MetricCard(label="Labor Cost", value="$3,240", change=-8.3,
                                change_label="vs forecast", trend="down", status="success"),
        "margin": MetricCard(label="Gross Margin", value="24.8%", change=2.1,
                             change_label="vs target", trend="up"),
    }
