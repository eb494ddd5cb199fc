"""定位模块：把自然语言描述解析成 Testing Library 风格的 Playwright 查询"""

import logging
from typing import Optional

from playwright.async_api import Locator, Page

from .errors import A11yError
from .gateway import LLMGateway
from .memory import SnapshotCache
from .models import LocatorQuery, QueryKind, Resolution, ResolutionSource, Strength
from .parsing import parse_locator_query
from .perception import Perception
from .prompts import (
    LOCATOR_SYSTEM_PROMPT,
    build_locator_prompt,
    build_simplified_locator_prompt,
)

logger = logging.getLogger(__name__)


def build_locator(page: Page, query: LocatorQuery) -> Locator:
    """把结构化查询转换为 Playwright Locator。"""
    params = query.params
    kind = query.query

    if kind is QueryKind.ROLE:
        if len(params) > 1 and params[1]:
            return page.get_by_role(params[0], name=params[1])
        return page.get_by_role(params[0])
    if kind is QueryKind.LABEL:
        return page.get_by_label(params[0])
    if kind is QueryKind.PLACEHOLDER:
        return page.get_by_placeholder(params[0])
    if kind is QueryKind.TEST_ID:
        return page.get_by_test_id(params[0])
    if kind is QueryKind.ALT_TEXT:
        return page.get_by_alt_text(params[0])
    return page.get_by_text(params[0], exact=False)


class A11yLocator:
    """
    定位器：缓存 → LLM 主尝试（standard 精简 + 超时）→ 降级尝试（aggressive 精简，无超时）
    → 文本兜底。locate() 永远返回可用的 Locator，不抛出模型相关异常。
    """

    def __init__(self, page: Page, gateway: LLMGateway, cache: Optional[SnapshotCache] = None,
                 perception: Optional[Perception] = None, timeout_ms: Optional[int] = 30000):
        self.page = page
        self.gateway = gateway
        self.cache = cache or SnapshotCache()
        self.perception = perception or Perception()
        self.timeout_ms = timeout_ms

    async def execute_prompt(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """直接调用当前配置的模型后端。"""
        return await self.gateway.execute(prompt, system_prompt=system_prompt)

    async def locate(self, description: str) -> Locator:
        resolution = await self.resolve(description)
        return build_locator(self.page, resolution.query)

    async def resolve(self, description: str) -> Resolution:
        cached = await self._from_cache(description)
        if cached is not None:
            return Resolution(cached, ResolutionSource.CACHE)

        query = await self._primary_attempt(description)
        if query is not None:
            self.cache.write(description, query)
            return Resolution(query, ResolutionSource.PRIMARY)

        query = await self._simplified_attempt(description)
        if query is not None:
            self.cache.write(description, query)
            return Resolution(query, ResolutionSource.SIMPLIFIED)

        logger.warning(f"⚠ 模型无法定位 \"{description}\"，退回文本匹配")
        return Resolution(LocatorQuery.literal(description), ResolutionSource.LITERAL)

    async def _from_cache(self, description: str) -> Optional[LocatorQuery]:
        query = self.cache.get(description)
        if query is None:
            return None
        # 只检查快照是否还能匹配到元素，不检查是否“正确”
        count = await build_locator(self.page, query).count()
        if count > 0:
            logger.info(f"✓ 快照命中 \"{description}\" → {query.query.value} {query.params}")
            return query
        logger.info(f"⚠ 快照已失效 \"{description}\"（0 个匹配），重新定位")
        return None

    async def _primary_attempt(self, description: str) -> Optional[LocatorQuery]:
        try:
            html = await self.perception.snapshot(self.page, Strength.STANDARD)
            response = await self.gateway.execute(
                build_locator_prompt(description, html),
                system_prompt=LOCATOR_SYSTEM_PROMPT,
                schema=LocatorQuery.model_json_schema(),
                timeout_ms=self.timeout_ms,
            )
            query = parse_locator_query(response)
        except A11yError as e:
            logger.warning(f"⚠ 定位 \"{description}\" 失败，改用精简 HTML 重试: {e}")
            return None
        logger.info(f"✓ 定位 \"{description}\" → {query.query.value} {query.params}")
        return query

    async def _simplified_attempt(self, description: str) -> Optional[LocatorQuery]:
        try:
            html = await self.perception.snapshot(self.page, Strength.AGGRESSIVE)
            response = await self.gateway.execute(
                build_simplified_locator_prompt(description, html),
                system_prompt=LOCATOR_SYSTEM_PROMPT,
                schema=LocatorQuery.model_json_schema(),
            )
            query = parse_locator_query(response)
        except A11yError as e:
            logger.warning(f"❌ 精简 HTML 定位 \"{description}\" 也失败: {e}")
            return None
        logger.info(f"✓ 精简 HTML 定位 \"{description}\" → {query.query.value} {query.params}")
        return query
