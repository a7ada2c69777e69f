"""Provider 与生成参数配置。

生成参数是策略常量：调用方不能在单次请求时修改，
如需调整只能改这里的部署配置。"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationPolicy:
    """一次补全请求的固定生成参数。"""

    max_tokens: int
    temperature: float
    top_p: float
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    policy: GenerationPolicy


AZURE_OPENAI_CONFIG = ProviderConfig(
    name="azure-openai",
    policy=GenerationPolicy(max_tokens=800, temperature=0.7, top_p=0.95),
)

