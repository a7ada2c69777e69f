"""门店后端 REST 客户端。

所有请求携带 x-api-key。后端未配置（地址/密钥缺失或仍为占位地址）时
直接返回 mock 数据；请求失败（网络错误、非 2xx、响应体不是合法 JSON）时，
若开启 enable_mock_fallback 且存在 mock 数据，同样回退到 mock，
否则抛出 BackendApiError / NetworkError。
"""

from typing import Any, Dict, Optional

import httpx

from storeai_core.config.settings import settings
from storeai_core.domain.exceptions import BackendApiError, BackendNotConfiguredError, NetworkError
from storeai_core.infrastructure.logging.logger import logger


PLACEHOLDER_HOST = "your-api-endpoint"

API_ENDPOINTS: Dict[str, Dict[str, str]] = {
    "store": {
        "get_info": "/store/info",
    },
    "inventory": {
        "get_all": "/inventory",
        "get_by_id": "/inventory/{id}",
        "update": "/inventory/{id}",
        "create": "/inventory",
        "delete": "/inventory/{id}",
    },
    "demand_forecast": {
        "get_all": "/forecast/demand",
        "get_by_product": "/forecast/demand/{product_id}",
    },
    "workforce": {
        "get_shifts": "/workforce/shifts",
        "get_hourly_forecast": "/workforce/forecast",
        "create_shift": "/workforce/shifts",
        "update_shift": "/workforce/shifts/{id}",
        "delete_shift": "/workforce/shifts/{id}",
    },
    "pricing": {
        "get_recommendations": "/pricing/recommendations",
        "apply_price_change": "/pricing/apply",
    },
    "placement": {
        "get_recommendations": "/placement/recommendations",
        "apply_placement": "/placement/apply",
    },
    "loss_prevention": {
        "get_shrinkage_events": "/loss-prevention/events",
        "update_event_status": "/loss-prevention/events/{id}",
    },
    "metrics": {
        "get_operational": "/metrics/operational",
    },
    "ai_agent": {
        "query": "/ai/query",
        "chat": "/ai/chat",
    },
}


class BackendClient:
    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str],
        enable_mock_fallback: bool = True,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._endpoint = (endpoint or "").rstrip("/")
        self._api_key = api_key or ""
        self._enable_mock_fallback = enable_mock_fallback
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, cfg=settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "BackendClient":
        return cls(
            endpoint=getattr(cfg, "backend_api_endpoint", None),
            api_key=getattr(cfg, "backend_api_key", None),
            enable_mock_fallback=getattr(cfg, "enable_mock_fallback", True),
            timeout=getattr(cfg, "http_timeout", 30.0),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._endpoint and self._api_key and PLACEHOLDER_HOST not in self._endpoint)

    async def fetch(
        self,
        path: str,
        *,
        method: str = "GET",
        payload: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
        mock: Optional[Any] = None,
    ) -> Any:
        """请求后端接口，返回 JSON（或 mock 数据）。

        Args:
            path: 以 / 开头的接口路径，见 API_ENDPOINTS。
            method: HTTP 方法。
            payload: JSON 请求体。
            params: 查询参数。
            mock: 回退数据；为 None 表示该接口没有 mock。
        """

        if not self.configured:
            logger.warning(
                "Backend API not configured. Using mock data.",
                extra={"extra": {"path": path, "has_mock": mock is not None}},
            )
            if mock is not None:
                return mock
            raise BackendNotConfiguredError(path)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False, transport=self._transport) as client:
                resp = await client.request(
                    method,
                    f"{self._endpoint}{path}",
                    json=payload,
                    params=params,
                    headers={
                        "Content-Type": "application/json",
                        "x-api-key": self._api_key,
                    },
                )
        except httpx.RequestError as e:
            if self._enable_mock_fallback and mock is not None:
                logger.warning(
                    "API call failed. Falling back to mock data.",
                    extra={"extra": {"path": path, "error": str(e)}},
                )
                return mock
            raise NetworkError(code="NETWORK_ERROR", message=str(e), path=path)

        # 3xx 同样视为失败
        if not resp.is_success:
            if self._enable_mock_fallback and mock is not None:
                logger.warning(
                    f"API call failed ({resp.status_code}). Falling back to mock data.",
                    extra={"extra": {"path": path, "status": resp.status_code}},
                )
                return mock
            raise BackendApiError(
                code="BACKEND_API_ERROR",
                message=f"API request failed: {resp.reason_phrase}",
                http_status=resp.status_code,
                path=path,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            if self._enable_mock_fallback and mock is not None:
                logger.warning(
                    "API returned invalid JSON. Falling back to mock data.",
                    extra={"extra": {"path": path, "status": resp.status_code, "error": str(e)}},
                )
                return mock
            raise BackendApiError(
                code="BACKEND_INVALID_RESPONSE",
                message="API request failed: invalid JSON response",
                http_status=502,
                path=path,
            )
