"""提示词与回复模板加载工具。

按语言(locale) 从 prompts/<locale> 目录读取模板文本：
- store_assistant_system.md: 系统提示词，嵌入本轮的数据摘要。
- degraded_reply.md: 降级回复模板，直接展示数据摘要。
- failure_reply.md: 主通道失败时固定的致歉回复。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(name: str, locale: str = "en") -> str:
    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").strip()


def render_system_prompt(database_context: str, locale: str = "en") -> str:
    return load_prompt("store_assistant_system", locale).format(database_context=database_context)


def render_degraded_reply(user_message: str, database_context: str, locale: str = "en") -> str:
    return load_prompt("degraded_reply", locale).format(
        user_message=user_message,
        database_context=database_context,
    )


def failure_reply(locale: str = "en") -> str:
    return load_prompt("failure_reply", locale)
