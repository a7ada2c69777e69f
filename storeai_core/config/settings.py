"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


FallbackPolicyName = Literal["fallback_on_missing_config_only", "fallback_on_any_failure"]


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("STOREAI_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Azure OpenAI（主对话通道）----
    azure_openai_endpoint: Optional[str] = Field(
        default=None,
        description="Azure OpenAI 资源地址，例如 https://xxx.openai.azure.com",
    )
    azure_openai_api_key: Optional[str] = Field(default=None, description="Azure OpenAI API 密钥")
    azure_openai_deployment: Optional[str] = Field(default=None, description="部署名称")
    azure_openai_api_version: Optional[str] = Field(
        default="2024-02-15-preview",
        description="chat/completions 接口的 api-version",
    )

    # ---- 门店后端 API ----
    backend_api_endpoint: Optional[str] = Field(
        default=None,
        description="门店数据 API 基础URL，例如 https://xxx.azurewebsites.net/api",
    )
    backend_api_key: Optional[str] = Field(default=None, description="门店数据 API 密钥 (x-api-key)")
    enable_mock_fallback: bool = Field(default=True, description="后端请求失败时是否回退到 mock 数据")

    # ---- 通用 ----
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒），也是对话请求的截止时间")
    fallback_policy: FallbackPolicyName = Field(
        default="fallback_on_missing_config_only",
        description="主通道失败时的降级策略",
    )
    locale: str = Field(default="en", description="提示词语言目录")
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator(
        "azure_openai_endpoint",
        "azure_openai_api_key",
        "azure_openai_deployment",
        "azure_openai_api_version",
        "backend_api_endpoint",
        "backend_api_key",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("azure_openai_api_key", "backend_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


@dataclass(frozen=True)
class CompletionConfig:
    """Azure OpenAI 调用所需的完整配置。

    四个字段必须同时存在，任意一个为空即视为"未配置"，
    因此只能通过 from_settings / from_values 构造。
    """

    endpoint: str
    api_key: str
    deployment: str
    api_version: str

    @property
    def chat_url(self) -> str:
        base = self.endpoint.rstrip("/")
        return (
            f"{base}/openai/deployments/{self.deployment}/chat/completions"
            f"?api-version={self.api_version}"
        )

    @classmethod
    def from_values(
        cls,
        endpoint: Optional[str],
        api_key: Optional[str],
        deployment: Optional[str],
        api_version: Optional[str],
    ) -> Optional["CompletionConfig"]:
        values = [(v or "").strip() for v in (endpoint, api_key, deployment, api_version)]
        if not all(values):
            return None
        return cls(*values)

    @classmethod
    def from_settings(cls, cfg) -> Optional["CompletionConfig"]:
        return cls.from_values(
            getattr(cfg, "azure_openai_endpoint", None),
            getattr(cfg, "azure_openai_api_key", None),
            getattr(cfg, "azure_openai_deployment", None),
            getattr(cfg, "azure_openai_api_version", None),
        )


settings = Settings()
