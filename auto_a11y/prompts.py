"""Prompt 模板"""

from typing import Sequence

from .models import ARIA_ROLES, ActionKind

LOCATOR_SYSTEM_PROMPT = (
    "You are an accessibility testing expert. You always return the COMPLETE text content "
    "for getByText queries, never partial matches. Return ONLY a JSON object."
)

ACTION_SYSTEM_PROMPT = (
    "You are a web automation assistant that helps users interact with web pages using natural "
    "language. Return ONLY valid JSON with no additional text or explanation."
)

_ROLE_LIST = ", ".join(sorted(ARIA_ROLES))

PRIORITY_RULES = f"""STRICT PRIORITY ORDER - You MUST follow this order when selecting a query type:

1. getByRole - HIGHEST PRIORITY
   - Use whenever the element has a semantic role and an accessible name
   - params: [role, accessible name], e.g. ["button", "Submit"], ["heading", "Welcome"]
   - ONLY use valid ARIA roles: {_ROLE_LIST}
   - NEVER use non-ARIA roles such as "paragraph", "span" or "div"

2. getByLabelText - for form controls with an associated label, e.g. ["Email address"]

3. getByPlaceholderText - for inputs with placeholder text, e.g. ["Enter your name"]

4. getByAltText - for images with alt text, e.g. ["Company logo"]

5. getByText - only when options 1-4 do not apply
   - You MUST provide the EXACT and COMPLETE text content of the element
   - NEVER return partial text: for <div>Yes, you can</div> return ["Yes, you can"], NOT ["Yes"]

6. getByTestId - LOWEST PRIORITY, only when nothing else works, e.g. ["login-form"]"""

SHORT_PRIORITY_RULES = (
    "Prefer, in order: getByRole (valid ARIA role + accessible name), getByLabelText, "
    "getByPlaceholderText, getByAltText, getByText (complete element text, never partial), "
    "getByTestId (last resort)."
)


def build_locator_prompt(description: str, html: str) -> str:
    return f"""
You are an expert in accessibility testing with Testing Library. Given the HTML below and a description of an element,
determine the most appropriate Testing Library query to locate that element.

Return ONLY a JSON object with the following format:
{{"query": "queryName", "params": ["param1", "param2"]}}

For example:
{{"query": "getByRole", "params": ["button", "Submit"]}}
{{"query": "getByText", "params": ["Sign up now"]}}
{{"query": "getByLabelText", "params": ["Email address"]}}
{{"query": "getByPlaceholderText", "params": ["Enter your name"]}}
{{"query": "getByTestId", "params": ["login-form"]}}

{PRIORITY_RULES}

Description: {description}

HTML:
{html}
""".strip()


def build_simplified_locator_prompt(description: str, html: str) -> str:
    """降级路径用的短 prompt，HTML 已经过激进精简。"""
    return f"""
Find the element described below in the simplified HTML and return ONLY a JSON object:
{{"query": "getByRole" | "getByLabelText" | "getByPlaceholderText" | "getByAltText" | "getByText" | "getByTestId", "params": ["..."]}}
{SHORT_PRIORITY_RULES}

Description: {description}

HTML:
{html}
""".strip()


def build_action_prompt(instruction: str, html: str, tool_descriptions: Sequence[str] = ()) -> str:
    actions = " | ".join(f'"{a.value}"' for a in ActionKind)
    tools = "\n".join(tool_descriptions) or "(none)"
    return f"""
You are an expert in web automation with Playwright. Given the HTML below and an instruction,
determine the action to perform and which element to target.

You have access to the following tools:
{tools}

First, analyze the instruction to determine:
1. What action to perform
2. Which element to target
3. Any additional value needed (text to type, option to select, key to press)
4. If multiple elements might match, which one to use as a zero-based index (0 for first, 1 for second, -1 for last)

Return ONLY a JSON object with the following format:
{{
  "action": {actions},
  "targetDescription": "description of the element to locate",
  "value": "value for fill/select/press actions, otherwise null",
  "index": null | 0 | 1 | -1
}}

For example:
{{"action": "click", "targetDescription": "the submit button", "value": null, "index": null}}
{{"action": "fill", "targetDescription": "the email field", "value": "user@example.com", "index": null}}
{{"action": "click", "targetDescription": "services link", "value": null, "index": -1}}

HTML:
{html}

Instruction: {instruction}
""".strip()


def build_retry_prompt(base_prompt: str, error: BaseException) -> str:
    return f"""{base_prompt}

Your previous response could not be parsed as valid JSON. Please try again and ensure you return ONLY a valid JSON object with no additional text, comments, or formatting.

Error: {error}"""
