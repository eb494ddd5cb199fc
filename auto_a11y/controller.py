"""执行模块：在定位到的元素上执行 LLM 决策的动作"""

import logging
from typing import Optional

from playwright.async_api import Locator

from .errors import ActionPlanError
from .models import VALUE_ACTIONS, ActionKind, ActionPlan

logger = logging.getLogger(__name__)


def apply_index(locator: Locator, index: Optional[int]) -> Locator:
    """None 不做选择，-1 取最后一个，n >= 0 取第 n 个（从 0 开始）。"""
    if index is None:
        return locator
    if index == -1:
        return locator.last
    if index >= 0:
        return locator.nth(index)
    return locator


class Controller:
    """执行模块：把 ActionPlan 分派到 Playwright Locator 上"""

    async def execute(self, locator: Locator, plan: ActionPlan) -> None:
        """
        执行动作。缺少 value 的 fill/select/press 直接抛 ActionPlanError，不重试。
        元素找不到、动作不适用等 Playwright 异常原样向上抛。
        """
        action = ActionKind(plan.action)
        value = plan.value

        if action in VALUE_ACTIONS and value is None:
            raise ActionPlanError(f"Value is required for {action.value} action")

        target = apply_index(locator, plan.index)

        if action is ActionKind.CLICK:
            await target.click()
        elif action is ActionKind.FILL:
            await target.fill(value)
        elif action is ActionKind.CHECK:
            await target.check()
        elif action is ActionKind.UNCHECK:
            await target.uncheck()
        elif action is ActionKind.SELECT:
            await target.select_option(value)
        elif action is ActionKind.PRESS:
            await target.press(value)
        elif action is ActionKind.HOVER:
            await target.hover()
        elif action is ActionKind.DBLCLICK:
            await target.dblclick()
        elif action is ActionKind.FOCUS:
            await target.focus()
        elif action is ActionKind.TAP:
            await target.tap()
        else:
            raise ActionPlanError(f"Unsupported action: {action.value}")

        index_str = f" [index={plan.index}]" if plan.index is not None else ""
        value_str = f" = '{value}'" if value is not None else ""
        logger.info(f"✓ {action.value} \"{plan.target_description}\"{index_str}{value_str}")
