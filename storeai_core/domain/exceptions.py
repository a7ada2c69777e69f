"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在调度层或会话层做统一捕获与用户提示。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_CONFIG"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、endpoint 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败。"""


class ApiError(BusinessError):
    """第三方 API 返回非 2xx 时抛出。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class ConfigurationAbsentError(ValidationError):
    """Azure OpenAI 配置不完整，调用方应改走降级通道而非报错。"""

    def __init__(self, message: str = "Azure OpenAI configuration is incomplete"):
        super().__init__(code="MISSING_CONFIG", message=message)


class CompletionError(ApiError):
    """对话补全接口返回非 2xx。"""

    def __init__(self, status: int, message: Optional[str] = None, code: str = "COMPLETION_ERROR"):
        super().__init__(
            code=code,
            message=message or f"Azure AI API error: {status}",
            http_status=status,
        )

    @property
    def status(self) -> int:
        return self.http_status


class DeadlineExceededError(CompletionError):
    """请求超过截止时间，按 HTTP 408 处理。"""

    def __init__(self, timeout: float):
        super().__init__(
            status=408,
            message=f"Azure AI API request exceeded deadline of {timeout:g}s",
            code="DEADLINE_EXCEEDED",
        )
        self.timeout = timeout


class RequestCancelledError(CompletionError):
    """调用方通过 CancelToken 取消了请求。"""

    def __init__(self, reason: str = "request cancelled"):
        super().__init__(status=499, message=reason, code="CANCELLED")


class BackendApiError(ApiError):
    """门店后端 API 返回非 2xx 且未启用 mock 回退。"""


class BackendNotConfiguredError(ValidationError):
    """门店后端 API 未配置且没有可用的 mock 数据。"""

    def __init__(self, endpoint: str):
        super().__init__(
            code="BACKEND_NOT_CONFIGURED",
            message="API not configured and no mock data available",
            endpoint=endpoint,
        )
