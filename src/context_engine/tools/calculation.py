"""
Calculation tools: a safe arithmetic evaluator and a percentage helper.

Expressions are parsed with ``ast`` and only numeric literals, arithmetic
operators and parentheses are evaluated; names, calls and attribute access are
rejected.
"""

import ast
import operator
import re
from typing import Any, Dict, Union

from .base import BaseTool
from .exceptions import ToolExecutionError
from .types import Tool, ToolContext, ParameterSpec, ParamType, ToolCategory


Number = Union[int, float]

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 100
# Integers stay well under the interpreter's 4300-digit str() limit
MAX_RESULT_BITS = 4096

_LEADING_VERBS = re.compile(
    r"^\s*(?:please\s+)?(?:calculate|compute|evaluate|what\s+is|what's|how\s+much\s+is)\b[\s:]*",
    re.IGNORECASE,
)
_PERCENT_OF = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*of\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
# "%" followed by an operand is modulo, otherwise it is a percentage
_BARE_PERCENT = re.compile(r"(\d+(?:\.\d+)?)\s*%(?!\s*[\d(])")
_ARITHMETIC_RUN = re.compile(r"[\d\.\s\+\-\*/\(\)%]+")


def _check_magnitude(value: Number) -> Number:
    if isinstance(value, int) and value.bit_length() > MAX_RESULT_BITS:
        raise ValueError("result is too large")
    return value


def _check_operands(op: ast.operator, left: Number, right: Number) -> None:
    """Reject integer operations whose result would exceed ``MAX_RESULT_BITS``.

    Checked before computing, since a big-integer power runs to completion
    without releasing the interpreter.
    """
    if isinstance(op, ast.Pow):
        if abs(right) > MAX_EXPONENT:
            raise ValueError(f"exponent {right} is too large")
        if isinstance(left, int) and isinstance(right, int) and right > 0 and abs(left) > 1:
            if left.bit_length() * right > MAX_RESULT_BITS:
                raise ValueError("result is too large")
    elif isinstance(op, ast.Mult) and isinstance(left, int) and isinstance(right, int):
        if left.bit_length() + right.bit_length() > MAX_RESULT_BITS + 1:
            raise ValueError("result is too large")


def _normalize(result: Number) -> Number:
    if isinstance(result, float) and result.is_integer() and abs(result) < 1e15:
        return int(result)
    return result


def _evaluate_node(node: ast.AST) -> Number:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body)

    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return _check_magnitude(node.value)

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate_node(node.left)
        right = _evaluate_node(node.right)
        _check_operands(node.op, left, right)
        return _check_magnitude(_BINARY_OPERATORS[type(node.op)](left, right))

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate_node(node.operand))

    raise ValueError(f"unsupported element: {type(node).__name__}")


def prepare_expression(expression: str) -> str:
    """Turn a natural-language arithmetic request into a Python expression."""
    text = _LEADING_VERBS.sub("", expression.strip())
    text = text.rstrip(" ?.!")
    text = text.replace("×", "*").replace("÷", "/").replace("^", "**")
    text = re.sub(r"(?<=\d)\s*[xX]\s*(?=\d)", "*", text)
    text = re.sub(r"(?<=\d),(?=\d{3}\b)", "", text)
    text = _PERCENT_OF.sub(r"(\1 * \2 / 100)", text)
    text = _BARE_PERCENT.sub(r"(\1 / 100)", text)
    return text.strip()


def evaluate_expression(expression: str) -> Number:
    """Safely evaluate an arithmetic expression.

    Raises:
        ValueError: If the expression is not plain arithmetic
        ZeroDivisionError: On division by zero
    """
    prepared = prepare_expression(expression)

    try:
        tree = ast.parse(prepared, mode="eval")
    except SyntaxError:
        # Fall back to the longest arithmetic run embedded in free text
        candidates = [
            run.strip() for run in _ARITHMETIC_RUN.findall(prepared)
            if re.search(r"\d", run)
        ]
        if not candidates:
            raise ValueError(f"no arithmetic expression found in '{expression}'")
        try:
            tree = ast.parse(max(candidates, key=len), mode="eval")
        except SyntaxError as e:
            raise ValueError(f"cannot parse '{expression}'") from e

    return _normalize(_evaluate_node(tree))


class CalculatorTool(BaseTool):
    """Safe arithmetic over an ``expression`` parameter."""

    def get_schema(self) -> Tool:
        return Tool(
            name="calculator",
            description="Perform mathematical calculations",
            category=ToolCategory.CALCULATION.value,
            input_schema=[
                ParameterSpec("expression", ParamType.STRING, True,
                              "Arithmetic expression, e.g. '15% of 1200' or '(2 + 3) * 4'"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        expression = self._require_string(parameters, "expression")

        try:
            result = evaluate_expression(expression)
        except ZeroDivisionError as e:
            raise ToolExecutionError("Division by zero", self.get_name(), context={"expression": expression}) from e
        except (ValueError, OverflowError) as e:
            raise ToolExecutionError(
                f"Cannot evaluate expression: {e}", self.get_name(), context={"expression": expression}
            ) from e

        return {"expression": expression, "result": result}


class PercentageCalculatorTool(BaseTool):
    """``value * percent / 100``."""

    def get_schema(self) -> Tool:
        return Tool(
            name="percentage_calc",
            description="Calculate percentages",
            category=ToolCategory.CALCULATION.value,
            input_schema=[
                ParameterSpec("value", ParamType.NUMBER, True, "Base value"),
                ParameterSpec("percent", ParamType.NUMBER, True, "Percentage to take of the value"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        value = parameters["value"]
        percent = parameters["percent"]
        return {
            "value": value,
            "percent": percent,
            "result": _normalize(value * percent / 100),
        }
