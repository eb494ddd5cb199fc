"""规划模块：调用 LLM 把自然语言指令转换为 ActionPlan"""

import logging
from typing import Optional, Sequence

from .errors import GatewayError, InstructionFailedError, ResponseParseError
from .gateway import LLMGateway
from .models import ActionPlan
from .parsing import parse_action_plan
from .prompts import ACTION_SYSTEM_PROMPT, build_action_prompt, build_retry_prompt

logger = logging.getLogger(__name__)


class Planner:
    """规划模块：调用 LLM 决策要执行的动作"""

    def __init__(self, gateway: LLMGateway):
        self.gateway = gateway

    async def decide(self, instruction: str, html: str, tool_descriptions: Sequence[str] = (),
                     max_retries: int = 2) -> ActionPlan:
        """
        根据指令 + 页面 HTML 输出动作计划。

        模型输出无法解析（或后端调用失败）时，把错误信息附加到 prompt 后重试，
        最多额外重试 max_retries 次；耗尽后抛 InstructionFailedError。
        """
        base_prompt = build_action_prompt(instruction, html, tool_descriptions)
        prompt = base_prompt
        attempts = max(0, max_retries) + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                response = await self.gateway.execute(
                    prompt,
                    system_prompt=ACTION_SYSTEM_PROMPT,
                    schema=ActionPlan.model_json_schema(),
                )
                plan = parse_action_plan(response)
            except (GatewayError, ResponseParseError) as e:
                last_error = e
                if attempt < attempts:
                    logger.warning(f"⚠ Retry {attempt}/{attempts - 1} for instruction: \"{instruction}\" ({e})")
                    prompt = build_retry_prompt(base_prompt, e)
                continue

            logger.info(f"✓ 计划: {plan.action.value} \"{plan.target_description}\" "
                        f"(value={plan.value!r}, index={plan.index})")
            return plan

        logger.error(f"❌ 指令 \"{instruction}\" 在 {attempts} 次尝试后仍无法解析: {last_error}")
        raise InstructionFailedError(instruction, attempts, last_error)
