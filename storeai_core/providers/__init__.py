"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护生成参数策略 (registry)。
- 提供 Azure OpenAI 的具体实现 (azure_openai_client)。
"""

from typing import Optional

from storeai_core.config.settings import CompletionConfig, settings
from storeai_core.providers.azure_openai_client import AzureOpenAIClient
from storeai_core.providers.base import CompletionProvider


def create_provider(config: Optional[CompletionConfig] = None, cfg=None) -> CompletionProvider:
    """创建补全 Provider；未显式传入 config 时从 settings 读取。"""

    cfg = cfg or settings
    if config is None:
        config = CompletionConfig.from_settings(cfg)
    return AzureOpenAIClient(
        config,
        timeout=getattr(cfg, "http_timeout", 30.0),
        locale=getattr(cfg, "locale", "en"),
    )
