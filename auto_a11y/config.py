"""配置：后端选择、模型、超时、缓存路径"""

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError


# 各后端默认模型
DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "anthropic": "claude-3-7-sonnet-latest",
    "ollama": "qwen2.5",
    "deepseek": "deepseek-chat",
    "gemini": "gemini-2.0-flash",
    "dashscope": "qwen-plus",
    "bedrock": "anthropic.claude-3-5-sonnet-20240620-v1:0",
}

# OpenAI 兼容接口 / 本地服务的默认地址
DEFAULT_BASE_URLS = {
    "ollama": "http://localhost:11434",
    "deepseek": "https://api.deepseek.com",
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "dashscope": "https://dashscope.aliyuncs.com/compatible-mode/v1",
}

# 各后端的 API Key 环境变量
API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "dashscope": "DASHSCOPE_API_KEY",
}

DEFAULT_TIMEOUT_MS = 30000


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    """auto_a11y 运行配置"""
    provider: str = "openai"
    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    snapshot_path: Optional[str] = None
    simplify_html: bool = True
    region: str = "us-east-1"

    def __post_init__(self):
        self.provider = self.provider.strip().lower()
        if self.provider not in DEFAULT_MODELS:
            raise ConfigError(f"未知的模型后端: {self.provider}")
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms 必须为正数: {self.timeout_ms}")

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]

    @property
    def resolved_base_url(self) -> Optional[str]:
        return self.base_url or DEFAULT_BASE_URLS.get(self.provider)

    def with_overrides(self, **overrides) -> "Settings":
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """
        从环境变量（以及 .env 文件）读取配置，关键字参数优先。
        """
        load_dotenv()

        provider = (overrides.pop("provider", None) or os.getenv("A11Y_PROVIDER") or "openai").strip().lower()
        key_env = API_KEY_ENV.get(provider)
        api_key = os.getenv("A11Y_API_KEY") or (os.getenv(key_env) if key_env else None)

        timeout_raw = os.getenv("A11Y_TIMEOUT_MS")
        try:
            timeout_ms = int(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_MS
        except ValueError as e:
            raise ConfigError(f"A11Y_TIMEOUT_MS 不是整数: {timeout_raw}") from e

        values = dict(
            provider=provider,
            model=os.getenv("A11Y_MODEL") or None,
            base_url=os.getenv("A11Y_BASE_URL") or None,
            api_key=api_key,
            timeout_ms=timeout_ms,
            snapshot_path=os.getenv("A11Y_SNAPSHOT_PATH") or None,
            simplify_html=_env_flag("A11Y_SIMPLIFY_HTML", True),
            region=os.getenv("AWS_REGION") or "us-east-1",
        )
        values.update(overrides)
        return cls(**values)
