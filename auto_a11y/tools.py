"""工具：Agent 可调用的能力，描述会写进 prompt"""

from playwright.async_api import Locator

from .locator import A11yLocator


class Tool:
    name = ""
    description = ""

    async def execute(self, **params):
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.name}: {self.description}"


class LocatorTool(Tool):
    """用自然语言描述定位元素"""

    name = "locateElement"
    description = "Locates an element on the page using a natural language description"

    def __init__(self, locator: A11yLocator):
        self.locator = locator

    async def execute(self, description: str) -> Locator:
        return await self.locator.locate(description)
