"""auto_a11y 核心类"""

from typing import List, Optional

from playwright.async_api import Locator, Page

from .config import Settings
from .controller import Controller
from .gateway import LLMGateway, create_gateway
from .locator import A11yLocator
from .memory import SnapshotCache
from .models import Strength
from .perception import Perception
from .planner import Planner
from .tools import LocatorTool, Tool


class AIAgent:
    """用自然语言驱动页面操作的智能体"""

    def __init__(self, page: Page, settings: Optional[Settings] = None,
                 gateway: Optional[LLMGateway] = None, cache: Optional[SnapshotCache] = None):
        self.page = page
        self.settings = settings or Settings.from_env()
        self.gateway = gateway or create_gateway(self.settings)
        self.cache = cache or SnapshotCache(self.settings.snapshot_path)
        self.perception = Perception(simplify_html=self.settings.simplify_html)
        self.locator = A11yLocator(page, self.gateway, self.cache, self.perception,
                                   timeout_ms=self.settings.timeout_ms)
        self.planner = Planner(self.gateway)
        self.controller = Controller()
        self.tools: List[Tool] = []
        self.register_tool(LocatorTool(self.locator))

    def register_tool(self, tool: Tool) -> None:
        self.tools.append(tool)

    def get_tool(self, name: str) -> Tool:
        tool = next((t for t in self.tools if t.name == name), None)
        if tool is None:
            raise LookupError(f"Tool not found: {name}")
        return tool

    async def execute(self, instruction: str, max_retries: int = 2) -> None:
        """
        执行一条自然语言指令，例如 "click the submit button"。

        1. 感知：获取并精简当前页面
        2. 规划：LLM 生成 ActionPlan（仅解析失败时重试）
        3. 定位：targetDescription 交给定位器
        4. 执行：按 index 选择元素并执行动作，失败直接抛出
        """
        html = await self.perception.snapshot(self.page, Strength.STANDARD)
        plan = await self.planner.decide(
            instruction, html, [t.describe() for t in self.tools], max_retries=max_retries
        )
        target = await self.get_tool(LocatorTool.name).execute(description=plan.target_description)
        await self.controller.execute(target, plan)

    async def locate(self, description: str) -> Locator:
        return await self.locator.locate(description)


def create_locator(page: Page, settings: Optional[Settings] = None, **overrides) -> A11yLocator:
    """按配置创建独立的定位器。"""
    settings = settings.with_overrides(**overrides) if settings else Settings.from_env(**overrides)
    return A11yLocator(
        page,
        create_gateway(settings),
        SnapshotCache(settings.snapshot_path),
        Perception(simplify_html=settings.simplify_html),
        timeout_ms=settings.timeout_ms,
    )


def create_agent(page: Page, settings: Optional[Settings] = None, **overrides) -> AIAgent:
    settings = settings.with_overrides(**overrides) if settings else Settings.from_env(**overrides)
    return AIAgent(page, settings)
