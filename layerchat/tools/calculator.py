"""
Arithmetic tool.

Expressions are parsed with ``ast`` and evaluated over a whitelist of node
types; nothing is ever passed to ``eval``.
"""
from typing import Any, Callable, Dict, List
import ast
import logging
import math
import operator
import re

from layerchat.tools.base import Tool

# Configure logging
logger = logging.getLogger(__name__)

MAX_EXPONENT = 1000
# Powers must stay within float range
MAX_RESULT_DIGITS = 308

EXAMPLES: List[str] = [
    "Basic: 2 + 2, 10 - 3, 5 * 4, 15 / 3",
    "Percentages: 15% of 200",
    "Powers: 2^3, 5 to the power of 2",
    "Functions: sqrt(25), sin(30), cos(60)",
]

_BIN_OPS: Dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: Dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

# Trigonometry takes degrees
_FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "sqrt": math.sqrt,
    "sin": lambda x: math.sin(math.radians(x)),
    "cos": lambda x: math.cos(math.radians(x)),
    "tan": lambda x: math.tan(math.radians(x)),
    "abs": abs,
    "log": math.log10,
    "ln": math.log,
}

_WORD_OPERATORS = [
    (re.compile(r"\bpercent of\b", re.IGNORECASE), "% of"),
    (re.compile(r"\bto the power of\b", re.IGNORECASE), "^"),
    (re.compile(r"\bsquare root of\s*(\d+(?:\.\d+)?)", re.IGNORECASE), r"sqrt(\1)"),
    (re.compile(r"\bmultiplied by\b|\btimes\b", re.IGNORECASE), "*"),
    (re.compile(r"\bdivided by\b", re.IGNORECASE), "/"),
    (re.compile(r"\bplus\b", re.IGNORECASE), "+"),
    (re.compile(r"\bminus\b", re.IGNORECASE), "-"),
]

_LEADING_PHRASES = re.compile(
    r"^(?:@math|@calc|@mathcalculator)?\s*(?:please\s+)?(?:calculate|compute|solve|evaluate|what is|what's|how much is)?\s*",
    re.IGNORECASE,
)

_PERCENT_OF = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*of\s*(\d+(?:\.\d+)?)", re.IGNORECASE)


def clean_expression(text: str) -> str:
    """
    Turn a natural-language arithmetic request into a Python expression.

    Args:
        text: Raw user text, e.g. "calculate 15% of 200"

    Returns:
        Expression string, e.g. "(15 / 100) * 200"
    """
    expr = _LEADING_PHRASES.sub("", text.strip()).strip().rstrip("?=. ")
    for pattern, replacement in _WORD_OPERATORS:
        expr = pattern.sub(replacement, expr)
    expr = _PERCENT_OF.sub(r"(\1 / 100) * \2", expr)
    expr = expr.replace("×", "*").replace("÷", "/").replace("^", "**")
    return expr.strip()


def _check_power(base: float, exponent: float) -> None:
    if abs(exponent) > MAX_EXPONENT:
        raise ValueError("Exponent too large")
    if exponent > 0 and abs(base) > 1 and exponent * math.log10(abs(base)) > MAX_RESULT_DIGITS:
        raise ValueError("Result too large")


def _eval_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow):
            _check_power(left, right)
        return _BIN_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and len(node.args) == 1
        and not node.keywords
    ):
        return _FUNCTIONS[node.func.id](_eval_node(node.args[0]))
    raise ValueError(f"Unsupported expression element: {node.__class__.__name__}")


def safe_eval(expression: str) -> float:
    """
    Evaluate an arithmetic expression.

    Raises:
        ValueError: If the expression is empty, not arithmetic, or not finite
    """
    if not expression:
        raise ValueError("Empty expression")
    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid mathematical expression: {expression}") from e

    try:
        result = float(_eval_node(tree))
    except (ZeroDivisionError, OverflowError, TypeError) as e:
        raise ValueError(str(e)) from e

    if not math.isfinite(result):
        raise ValueError("Invalid calculation result")
    return result


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6f}".rstrip("0").rstrip(".")


class MathTool(Tool):
    name = "math"
    label = "Math Calculator"
    description = "Perform mathematical calculations and solve equations"
    mentions = ("calc", "mathcalculator")
    trigger = re.compile(
        r"@math|\bcalculate\b|\bsolve\b|\bequation\b|\bcompute\b|\bmultiply\b|\bdivide\b|\bpercentage\b",
        re.IGNORECASE,
    )
    default_timeout = 2.0
    source_tag = "math_calculator"
    fallback_tag = "math_fallback"

    async def _run(self, query: str) -> Dict[str, Any]:
        expression = clean_expression(query)
        result = safe_eval(expression)
        formatted = format_number(result)
        return {
            "expression": expression,
            "result": result,
            "formatted": formatted,
            "steps": [f"Expression: {expression}", f"Result: {formatted}"],
        }

    def _fallback_payload(self, query: str, reason: str) -> Dict[str, Any]:
        return {
            "expression": query,
            "message": 'Please provide a valid mathematical expression (e.g., "2 + 2", "15% of 200", "sqrt(25)")',
            "examples": list(EXAMPLES),
        }
