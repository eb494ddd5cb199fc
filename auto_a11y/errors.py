"""异常定义"""

from typing import Optional


class A11yError(Exception):
    """所有 auto_a11y 异常的基类"""


class ConfigError(A11yError):
    """配置不可用（未知后端等）"""


class GatewayError(A11yError):
    """模型后端调用失败：网络、鉴权、空响应等"""


class GatewayTimeoutError(GatewayError):
    """后端调用输给了超时计时器"""


class ResponseParseError(A11yError):
    """模型输出无法解析为 JSON，或不符合 schema"""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw = raw


class ActionPlanError(A11yError):
    """计划语法合法但语义不完整（缺少 value 等），不重试"""


class InstructionFailedError(A11yError):
    """重试次数耗尽，指令无法转换为可执行计划"""

    def __init__(self, instruction: str, attempts: int, last_error: Optional[BaseException]):
        self.instruction = instruction
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed to execute instruction \"{instruction}\" after {attempts} attempts: {last_error}"
        )
