"""数据模型定义"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class QueryKind(str, Enum):
    """Testing Library 风格的查询类型（取值即序列化名称）"""
    ROLE = "getByRole"
    TEXT = "getByText"
    LABEL = "getByLabelText"
    PLACEHOLDER = "getByPlaceholderText"
    TEST_ID = "getByTestId"
    ALT_TEXT = "getByAltText"


_QUERY_NAMES = {kind.value.lower(): kind for kind in QueryKind}


# getByRole 只允许使用的 ARIA 角色（封闭集合）
ARIA_ROLES = frozenset([
    "alert", "alertdialog", "application", "article", "banner", "button",
    "cell", "checkbox", "columnheader", "combobox", "complementary",
    "contentinfo", "definition", "dialog", "directory", "document", "feed",
    "figure", "form", "grid", "gridcell", "group", "heading", "img", "link",
    "list", "listbox", "listitem", "log", "main", "marquee", "math", "menu",
    "menubar", "menuitem", "meter", "navigation", "none", "note", "option",
    "presentation", "progressbar", "radio", "radiogroup", "region", "row",
    "rowgroup", "rowheader", "scrollbar", "search", "searchbox", "separator",
    "slider", "spinbutton", "status", "switch", "tab", "table", "tablist",
    "tabpanel", "term", "textbox", "timer", "toolbar", "tooltip", "tree",
    "treegrid", "treeitem",
])


class LocatorQuery(BaseModel):
    """结构化查询：query 类型 + 有序参数（至少一个）"""
    query: QueryKind
    params: List[str] = Field(min_length=1)

    @field_validator("query", mode="before")
    @classmethod
    def _normalize_query_name(cls, value: Any) -> Any:
        # 查询名不区分大小写：getbyrole / GETBYTEXT 也可以
        if isinstance(value, str) and not isinstance(value, QueryKind):
            return _QUERY_NAMES.get(value.strip().lower(), value)
        return value

    @model_validator(mode="after")
    def _check_role(self) -> "LocatorQuery":
        if self.query is QueryKind.ROLE:
            role = self.params[0].strip().lower()
            if role not in ARIA_ROLES:
                raise ValueError(f"'{self.params[0]}' 不是合法的 ARIA role")
            self.params[0] = role
        return self

    @classmethod
    def literal(cls, text: str) -> "LocatorQuery":
        """兜底查询：直接按原始描述做文本匹配，不经过校验。"""
        return cls.model_construct(query=QueryKind.TEXT, params=[text])

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "LocatorQuery":
        return cls(query=data.get("queryName"), params=data.get("params"))

    def to_snapshot(self) -> Dict[str, Any]:
        return {"queryName": self.query.value, "params": list(self.params)}


class ActionKind(str, Enum):
    CLICK = "click"
    FILL = "fill"
    CHECK = "check"
    UNCHECK = "uncheck"
    SELECT = "select"
    PRESS = "press"
    HOVER = "hover"
    DBLCLICK = "dblclick"
    FOCUS = "focus"
    TAP = "tap"


# 必须携带 value 的动作
VALUE_ACTIONS = frozenset([ActionKind.FILL, ActionKind.SELECT, ActionKind.PRESS])


class ActionPlan(BaseModel):
    """Planner 输出的结构化决策"""
    model_config = ConfigDict(populate_by_name=True)

    action: ActionKind
    target_description: str = Field(alias="targetDescription", min_length=1)
    value: Optional[str] = None
    index: Optional[int] = Field(default=None, ge=-1)  # None=不选择, -1=最后一个, n=第 n 个

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Strength(str, Enum):
    """HTML 精简强度"""
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"


@dataclass
class ResolutionContext:
    """单次页面快照及其精简结果，原始 HTML 变化即失效"""
    raw_html: Optional[str] = None
    simplified: Dict[Strength, str] = field(default_factory=dict)


class ResolutionSource(str, Enum):
    CACHE = "cache"
    PRIMARY = "primary"
    SIMPLIFIED = "simplified"
    LITERAL = "literal"


@dataclass
class Resolution:
    """定位结果：查询 + 来源"""
    query: LocatorQuery
    source: ResolutionSource
