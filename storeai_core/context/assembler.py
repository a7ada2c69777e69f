"""上下文汇总（Context Assembler）。

根据用户消息中的关键词（不区分大小写的子串匹配）挑选相关的数据主题，
并发拉取各主题的数据并生成固定格式的文本摘要（digest）。

- 主题按 TOPICS 的声明顺序输出，与关键词在消息中的先后无关。
- 单个主题拉取失败只记录日志并跳过该主题，不影响其余主题。
- 没有任何主题命中（或全部失败）时返回固定占位文本。
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from storeai_core.domain.retail import HourlyForecast, InventoryItem, MetricCard, PricingRecommendation, Shift
from storeai_core.infrastructure.logging.logger import logger


NO_CONTEXT = "No specific database context available for this query."
MAX_EXAMPLE_ITEMS = 3


class DataAccessors(Protocol):
    """汇总时用到的只读数据接口，RetailDataService 即为其实现。"""

    async def get_inventory(self) -> List[InventoryItem]:
        ...

    async def get_pricing_recommendations(self) -> List[PricingRecommendation]:
        ...

    async def get_shifts(self, date: Optional[str] = None) -> List[Shift]:
        ...

    async def get_hourly_forecast(self, date: Optional[str] = None) -> List[HourlyForecast]:
        ...

    async def get_operational_metrics(self) -> Dict[str, MetricCard]:
        ...


@dataclass(frozen=True)
class DomainSnippet:
    topic: str
    header: str
    lines: Tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join([f"{self.header}:", *(f"- {line}" for line in self.lines)])


@dataclass(frozen=True)
class ContextDigest:
    """单轮对话的数据摘要，构造后不可修改，也不跨轮复用。"""

    snippets: Tuple[DomainSnippet, ...] = ()

    @property
    def topics(self) -> Tuple[str, ...]:
        return tuple(s.topic for s in self.snippets)

    @property
    def text(self) -> str:
        if not self.snippets:
            return NO_CONTEXT
        return "\n\n".join(s.text for s in self.snippets)

    def __str__(self) -> str:
        return self.text


SnippetBuilder = Callable[[DataAccessors], Awaitable[DomainSnippet]]


@dataclass(frozen=True)
class Topic:
    name: str
    triggers: Tuple[str, ...]
    build: SnippetBuilder

    def matches(self, lowered: str) -> bool:
        return any(t in lowered for t in self.triggers)


def _num(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _signed_percent(change: Optional[float]) -> str:
    change = change if change is not None else 0
    sign = "+" if change > 0 else ""
    return f"{sign}{_num(change)}%"


async def _inventory_snippet(data: DataAccessors) -> DomainSnippet:
    inventory = await data.get_inventory()
    attention = [item for item in inventory if item.needs_attention]
    examples = ", ".join(
        f"{item.product_name} ({_num(item.current_stock)} {item.unit_of_measure})"
        for item in attention[:MAX_EXAMPLE_ITEMS]
    )
    return DomainSnippet(
        topic="inventory",
        header="Current Inventory Status",
        lines=(
            f"Total items: {len(inventory)}",
            f"Low/Critical stock items: {len(attention)}",
            f"Top concerns: {examples or 'none'}",
        ),
    )


async def _pricing_snippet(data: DataAccessors) -> DomainSnippet:
    pricing = await data.get_pricing_recommendations()
    high = sum(1 for p in pricing if p.urgency == "high")
    return DomainSnippet(
        topic="pricing",
        header="Pricing Recommendations",
        lines=(
            f"Total recommendations: {len(pricing)}",
            f"High priority items: {high}",
        ),
    )


async def _workforce_snippet(data: DataAccessors) -> DomainSnippet:
    shifts, forecast = await asyncio.gather(data.get_shifts(), data.get_hourly_forecast())
    understaffed = sum(1 for f in forecast if f.coverage_status == "understaffed")
    return DomainSnippet(
        topic="workforce",
        header="Workforce Status",
        lines=(
            f"Scheduled shifts today: {len(shifts)}",
            f"Understaffed hours: {understaffed}",
        ),
    )


async def _metrics_snippet(data: DataAccessors) -> DomainSnippet:
    metrics = await data.get_operational_metrics()
    clv, revenue, stockouts = metrics["clv"], metrics["revenue"], metrics["stockouts"]
    return DomainSnippet(
        topic="metrics",
        header="Key Metrics",
        lines=(
            f"CLV: {_num(clv.value)} ({_signed_percent(clv.change)})",
            f"Revenue: {_num(revenue.value)} ({_signed_percent(revenue.change)})",
            f"Stockouts: {_num(stockouts.value)}",
        ),
    )


# 新增主题只需在此追加一项，输出顺序即声明顺序
TOPICS: Tuple[Topic, ...] = (
    Topic("inventory", ("inventory", "stock"), _inventory_snippet),
    Topic("pricing", ("pricing", "price"), _pricing_snippet),
    Topic("workforce", ("staff", "workforce", "schedule"), _workforce_snippet),
    Topic("metrics", ("metric", "performance", "overview"), _metrics_snippet),
)


class ContextAssembler:
    def __init__(self, accessors: DataAccessors, topics: Sequence[Topic] = TOPICS):
        self._accessors = accessors
        self._topics = tuple(topics)

    def match(self, message: str) -> List[Topic]:
        lowered = (message or "").lower()
        return [t for t in self._topics if t.matches(lowered)]

    async def build_digest(self, message: str) -> ContextDigest:
        """为一条用户消息生成摘要，永不抛出业务异常。"""

        matched = self.match(message)
        if not matched:
            return ContextDigest()

        results = await asyncio.gather(
            *(topic.build(self._accessors) for topic in matched),
            return_exceptions=True,
        )
        snippets: List[DomainSnippet] = []
        for topic, result in zip(matched, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Failed to fetch {topic.name} context",
                    extra={"extra": {"topic": topic.name, "error": repr(result)}},
                )
                continue
            if isinstance(result, BaseException):
                raise result
            snippets.append(result)
        return ContextDigest(tuple(snippets))
