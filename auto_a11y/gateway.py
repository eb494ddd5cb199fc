"""模型网关：统一的 execute(prompt, ...) → 文本 接口，每种后端一个实现"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Dict, Optional

from .config import Settings
from .errors import ConfigError, GatewayError, GatewayTimeoutError

logger = logging.getLogger(__name__)

# 强制首个输出 token，引导模型输出 JSON 对象
JSON_PRIMER = "{"

OPENAI_COMPATIBLE = ("openai", "deepseek", "gemini", "dashscope")


def _discard_late_result(label: str):
    def _callback(task: "asyncio.Task") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug(f"{label} 超时后返回异常，已丢弃: {exc}")
        else:
            logger.debug(f"{label} 超时后返回结果，已丢弃")
    return _callback


async def race_with_timeout(call: Awaitable[str], timeout_s: float, label: str = "gateway") -> str:
    """
    让后端调用与计时器赛跑。先到者胜出；超时后调用不会被取消，
    它之后产生的结果或异常会被记录并丢弃。
    """
    task = asyncio.ensure_future(call)
    done, _ = await asyncio.wait({task}, timeout=timeout_s)
    if task in done:
        return task.result()
    task.add_done_callback(_discard_late_result(label))
    raise GatewayTimeoutError(f"{label} 在 {int(timeout_s * 1000)}ms 内没有返回")


def schema_instruction(schema: Dict[str, Any]) -> str:
    return (
        "Respond with a single JSON object that conforms to this JSON Schema:\n"
        f"{json.dumps(schema, ensure_ascii=False)}"
    )


class LLMGateway:
    """
    模型网关基类。子类实现 _complete()，基类负责超时赛跑、异常包装和空响应检查。
    """

    name = "llm"
    supports_prefill = False

    def __init__(self, model: str):
        self.model = model

    async def _complete(self, prompt: str, system_prompt: Optional[str],
                        schema: Optional[Dict[str, Any]]) -> str:
        raise NotImplementedError

    async def execute(self, prompt: str, system_prompt: Optional[str] = None,
                      schema: Optional[Dict[str, Any]] = None,
                      timeout_ms: Optional[int] = None) -> str:
        """
        发送 prompt，返回模型原始文本。
        传输错误、超时、空响应都抛 GatewayError（或其子类）。
        """
        label = f"{self.name}:{self.model}"
        call = self._complete(prompt, system_prompt, schema)
        try:
            if timeout_ms:
                text = await race_with_timeout(call, timeout_ms / 1000, label)
            else:
                text = await call
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"{label} 调用失败: {e}") from e

        if not text or not text.strip() or text.strip() == JSON_PRIMER:
            raise GatewayError(f"{label} 返回了空响应")
        return text.strip()


class OpenAIGateway(LLMGateway):
    """
    OpenAI 及其兼容接口（DeepSeek、Gemini、DashScope 等）。

    Chat Completions 不会续写末尾的 assistant 消息，所以不做 '{' 预填充，
    靠 response_format（json_schema / json_object）约束输出必须是 JSON 对象。
    """

    name = "openai"

    def __init__(self, client, model: str, strict_schema: bool = True):
        super().__init__(model)
        self.client = client
        self.strict_schema = strict_schema

    async def _complete(self, prompt, system_prompt, schema):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if schema is not None:
            if self.strict_schema:
                kwargs["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {"name": schema.get("title", "response"), "schema": schema},
                }
            else:
                kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=messages,
            **kwargs,
        )
        return response.choices[0].message.content or ""


class AnthropicGateway(LLMGateway):
    """Anthropic Claude，使用 assistant 预填充 '{'"""

    name = "anthropic"
    supports_prefill = True

    def __init__(self, client, model: str, max_tokens: int = 1024):
        super().__init__(model)
        self.client = client
        self.max_tokens = max_tokens

    async def _complete(self, prompt, system_prompt, schema):
        system_parts = [p for p in (system_prompt, schema_instruction(schema) if schema else None) if p]
        kwargs = {}
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0,
            messages=[
                {"role": "user", "content": prompt},
                {"role": "assistant", "content": JSON_PRIMER},
            ],
            **kwargs,
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        return JSON_PRIMER + text


class OllamaGateway(LLMGateway):
    """
    本地 Ollama。

    不做 '{' 预填充：chat 接口对末尾 assistant 消息的续写取决于模型模板，
    由 format 参数（JSON Schema 或 "json"）在解码阶段约束输出结构。
    """

    name = "ollama"

    def __init__(self, client, model: str):
        super().__init__(model)
        self.client = client

    async def _complete(self, prompt, system_prompt, schema):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat(
            model=self.model,
            messages=messages,
            format=schema if schema is not None else "json",
            options={"temperature": 0},
        )
        return response["message"]["content"]


class BedrockGateway(LLMGateway):
    """AWS Bedrock Converse API；boto3 是同步客户端，放到线程里执行"""

    name = "bedrock"
    supports_prefill = True

    def __init__(self, client, model: str, max_tokens: int = 1024):
        super().__init__(model)
        self.client = client
        self.max_tokens = max_tokens

    async def _complete(self, prompt, system_prompt, schema):
        system_parts = [p for p in (system_prompt, schema_instruction(schema) if schema else None) if p]
        kwargs = {}
        if system_parts:
            kwargs["system"] = [{"text": "\n\n".join(system_parts)}]

        response = await asyncio.to_thread(
            self.client.converse,
            modelId=self.model,
            messages=[
                {"role": "user", "content": [{"text": prompt}]},
                {"role": "assistant", "content": [{"text": JSON_PRIMER}]},
            ],
            inferenceConfig={"maxTokens": self.max_tokens, "temperature": 0.0},
            **kwargs,
        )
        blocks = response["output"]["message"]["content"]
        return JSON_PRIMER + "".join(block.get("text", "") for block in blocks)


def create_gateway(settings: Settings) -> LLMGateway:
    """按配置创建唯一的后端实例。"""
    provider = settings.provider
    model = settings.resolved_model

    if provider in OPENAI_COMPATIBLE:
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=settings.api_key, base_url=settings.resolved_base_url)
        return OpenAIGateway(client, model, strict_schema=(provider == "openai"))

    if provider == "anthropic":
        from anthropic import AsyncAnthropic

        kwargs = {"api_key": settings.api_key}
        if settings.base_url:
            kwargs["base_url"] = settings.base_url
        return AnthropicGateway(AsyncAnthropic(**kwargs), model)

    if provider == "ollama":
        from ollama import AsyncClient

        return OllamaGateway(AsyncClient(host=settings.resolved_base_url), model)

    if provider == "bedrock":
        import boto3

        kwargs = {"region_name": settings.region}
        if settings.base_url:
            kwargs["endpoint_url"] = settings.base_url
        return BedrockGateway(boto3.client("bedrock-runtime", **kwargs), model)

    raise ConfigError(f"未知的模型后端: {provider}")
