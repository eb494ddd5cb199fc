"""HTML 精简：把完整页面压缩成适合 LLM 阅读的有限长度文本"""

import logging
import re

from bs4 import BeautifulSoup, Comment

from .models import Strength

logger = logging.getLogger(__name__)

MAX_LENGTH = {
    Strength.STANDARD: 15000,
    Strength.AGGRESSIVE: 6000,
}

TRUNCATION_MARKER = "\n...[content truncated]...\n"

# 对定位毫无帮助的标签，直接删除
NOISE_TAGS = ["script", "style", "svg", "noscript", "template", "link", "meta"]

# 激进模式下保留的属性（无障碍相关）
KEEP_ATTRS = {
    "role", "aria-label", "aria-labelledby", "aria-describedby", "aria-checked",
    "aria-expanded", "aria-selected", "alt", "placeholder", "name", "type",
    "for", "title", "value", "data-testid",
}

# 激进模式下展开（去掉标签保留内容）的纯展示容器
PRESENTATIONAL_TAGS = ["div", "span", "font", "center", "b", "i", "em", "strong", "small", "u"]


def truncate(text: str, max_length: int) -> str:
    """超长时保留首尾两段，页面首尾往往有导航和表单按钮。"""
    if len(text) <= max_length:
        return text
    half = max_length // 2
    return text[:half] + TRUNCATION_MARKER + text[-half:]


def _body_markup(soup: BeautifulSoup) -> str:
    body = soup.body
    markup = body.decode_contents() if body is not None else soup.decode()
    return markup.strip()


def _strip_noise(soup: BeautifulSoup) -> None:
    for tag in soup(NOISE_TAGS):
        if not tag.decomposed:
            tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for img in soup.find_all("img"):
        if (img.get("src") or "").startswith("data:"):
            img.decompose()


def _strip_attributes(soup: BeautifulSoup) -> None:
    for el in soup.find_all(True):
        for attr in list(el.attrs):
            if attr in ("class", "id", "style") or attr.startswith("on"):
                del el.attrs[attr]
            elif attr.startswith("data-") and attr != "data-testid":
                del el.attrs[attr]


def _collapse_nested_divs(soup: BeautifulSoup) -> None:
    # div > div:only-child，外层只包了一个 div 时展开内层
    for div in soup.find_all("div"):
        parent = div.parent
        if parent is None or parent.name != "div":
            continue
        siblings = [c for c in parent.contents if getattr(c, "name", None) or str(c).strip()]
        if siblings == [div]:
            div.unwrap()


def _remove_empty(soup: BeautifulSoup) -> None:
    # 逆序遍历，子容器删掉后父容器也能被判空
    for el in reversed(soup.find_all(["div", "span"])):
        if el.find(True) is None and not el.get_text(strip=True):
            el.decompose()


def _keep_a11y_attributes(soup: BeautifulSoup) -> None:
    for el in soup.find_all(True):
        for attr in list(el.attrs):
            if attr not in KEEP_ATTRS:
                del el.attrs[attr]


def _unwrap_presentational(soup: BeautifulSoup) -> None:
    for el in soup.find_all(PRESENTATIONAL_TAGS):
        if el.attrs:
            # 带 role / aria-label 的容器有语义，保留
            continue
        el.unwrap()


def extract_body(html: str) -> str:
    """
    只去掉脚本和样式，返回 body 内容（有长度上限）。
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return truncate(_body_markup(soup), MAX_LENGTH[Strength.STANDARD])
    except Exception as e:
        logger.warning(f"⚠ 提取 body 失败: {e}")
        return truncate(html, MAX_LENGTH[Strength.STANDARD])


def simplify(html: str, strength: Strength = Strength.STANDARD) -> str:
    """
    精简 HTML，同样的输入总是得到同样的输出。

    standard：去掉脚本/样式/内联图片、class/id/style/data-*（保留 data-testid），
              展开单子节点嵌套 div，删除空容器。
    aggressive：在 standard 基础上只保留无障碍相关属性，展开纯展示标签，
                压缩空白，长度上限更小。
    """
    strength = Strength(strength)
    max_length = MAX_LENGTH[strength]
    try:
        soup = BeautifulSoup(html, "html.parser")
        _strip_noise(soup)
        _strip_attributes(soup)
        _collapse_nested_divs(soup)
        _remove_empty(soup)

        if strength is Strength.AGGRESSIVE:
            _keep_a11y_attributes(soup)
            _unwrap_presentational(soup)
            markup = re.sub(r"\s+", " ", _body_markup(soup)).strip()
        else:
            markup = re.sub(r"\n\s*\n+", "\n", _body_markup(soup))

        return truncate(markup, max_length)
    except Exception as e:
        logger.warning(f"⚠ HTML 精简失败，使用原始内容: {e}")
        return truncate(html, max_length)
