"""模型输出解析：去掉代码块包裹、提取 JSON、按 schema 校验"""

import json
import re
from typing import Any, Dict

from pydantic import ValidationError

from .errors import ResponseParseError
from .models import ActionPlan, LocatorQuery

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_DECODER = json.JSONDecoder()


def extract_json_text(text: str) -> str:
    """
    模型有时会把 JSON 包在 ```json ... ``` 里，或者在前后加解释文字。
    返回第一个能完整解析的 {...} 片段；后面多余的文字或第二个对象都丢掉。
    """
    cleaned = text.strip()
    fenced = _FENCE_RE.search(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()

    start = cleaned.find("{")
    if start < 0:
        return cleaned
    idx = start
    while idx >= 0:
        try:
            _, end = _DECODER.raw_decode(cleaned, idx)
        except json.JSONDecodeError:
            idx = cleaned.find("{", idx + 1)
            continue
        return cleaned[idx:end]
    # 没有完整对象，交给 json.loads 报错
    return cleaned[start:]


def load_json_object(text: str) -> Dict[str, Any]:
    candidate = extract_json_text(text)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON response: {text}", raw=text) from e
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object, got: {text}", raw=text)
    return data


def parse_locator_query(text: str) -> LocatorQuery:
    data = load_json_object(text)
    try:
        return LocatorQuery.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Response does not match the locator query schema: {e}", raw=text) from e


def parse_action_plan(text: str) -> ActionPlan:
    data = load_json_object(text)
    try:
        return ActionPlan.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Response does not match the action plan schema: {e}", raw=text) from e
