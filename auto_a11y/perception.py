"""感知模块：读取页面 HTML 并生成给 LLM 的精简表示"""

from playwright.async_api import Page

from .models import ResolutionContext, Strength
from .simplifier import extract_body, simplify


class Perception:
    """
    感知模块：获取页面快照并精简。
    原始 HTML 与上一次完全相同时复用已生成的精简结果，否则整体丢弃重新生成。
    """

    def __init__(self, simplify_html: bool = True):
        self.simplify_html = simplify_html
        self.context = ResolutionContext()

    async def snapshot(self, page: Page, strength: Strength = Strength.STANDARD) -> str:
        """
        返回指定强度的页面表示。

        simplify_html 关闭时，standard 强度只去掉脚本和样式；
        aggressive 强度总是执行完整精简（降级路径需要更小的输入）。
        """
        html = await page.content()
        if html != self.context.raw_html:
            self.context = ResolutionContext(raw_html=html)

        strength = Strength(strength)
        cached = self.context.simplified.get(strength)
        if cached is None:
            if strength is Strength.STANDARD and not self.simplify_html:
                cached = extract_body(html)
            else:
                cached = simplify(html, strength)
            self.context.simplified[strength] = cached
        return cached
