"""auto_a11y 包：用 LLM 把自然语言描述转换为无障碍优先的 Playwright 定位器

包含各个模块：
- models: 数据模型
- config: 配置
- simplifier / perception: 感知模块（HTML 精简）
- memory: 记忆模块（定位快照）
- gateway: 模型网关
- locator: 定位模块
- planner: 规划模块
- controller: 执行模块
- core: 核心 Agent 类
"""

from .models import (
    ActionKind,
    ActionPlan,
    LocatorQuery,
    QueryKind,
    Resolution,
    ResolutionSource,
    Strength,
)
from .config import Settings
from .errors import (
    A11yError,
    ActionPlanError,
    ConfigError,
    GatewayError,
    GatewayTimeoutError,
    InstructionFailedError,
    ResponseParseError,
)
from .simplifier import simplify
from .perception import Perception
from .memory import SnapshotCache, snapshot_path_for_test
from .gateway import (
    AnthropicGateway,
    BedrockGateway,
    LLMGateway,
    OllamaGateway,
    OpenAIGateway,
    create_gateway,
)
from .locator import A11yLocator, build_locator
from .planner import Planner
from .controller import Controller
from .tools import LocatorTool, Tool
from .core import AIAgent, create_agent, create_locator

__all__ = [
    "ActionKind",
    "ActionPlan",
    "LocatorQuery",
    "QueryKind",
    "Resolution",
    "ResolutionSource",
    "Strength",
    "Settings",
    "A11yError",
    "ActionPlanError",
    "ConfigError",
    "GatewayError",
    "GatewayTimeoutError",
    "InstructionFailedError",
    "ResponseParseError",
    "simplify",
    "Perception",
    "SnapshotCache",
    "snapshot_path_for_test",
    "AnthropicGateway",
    "BedrockGateway",
    "LLMGateway",
    "OllamaGateway",
    "OpenAIGateway",
    "create_gateway",
    "A11yLocator",
    "build_locator",
    "Planner",
    "Controller",
    "LocatorTool",
    "Tool",
    "AIAgent",
    "create_agent",
    "create_locator",
]
