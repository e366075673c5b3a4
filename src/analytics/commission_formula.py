from __future__ import annotations

import ast
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from src.shared.money import MAX_AMOUNT

FORMULA_VARIABLES = ("orders", "hours", "acceptance", "ridersCount", "days", "avgDailyHours")
MAX_FORMULA_LENGTH = 500
MAX_EXPONENT = 8

_BINARY_OPERATORS: Dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPERATORS: Dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}
_COMPARE_OPERATORS: Dict[type, Callable[[float, float], bool]] = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
}
_FUNCTIONS: Dict[str, Callable[..., float]] = {
    "min": min,
    "max": max,
    "abs": abs,
    "round": round,
}


class FormulaError(ValueError):
    pass


@dataclass(frozen=True)
class CommissionFormula:
    """A compiled commission expression over the fixed variable set.

    The grammar is closed: numbers, the variables in ``FORMULA_VARIABLES``,
    arithmetic, comparisons, ``and``/``or``/``not``, ``x if cond else y`` and
    the functions ``min``, ``max``, ``abs``, ``round``. A formula that is just
    a number is a rate per order.
    """

    source: str
    tree: ast.Expression
    rate_per_order: Optional[float] = None

    def evaluate(self, variables: Mapping[str, float]) -> float:
        try:
            if self.rate_per_order is not None:
                number = self.rate_per_order * float(variables.get("orders", 0))
            else:
                number = float(_evaluate(self.tree.body, variables))
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise FormulaError(f"Formula could not be evaluated: {exc}") from exc
        if math.isnan(number) or math.isinf(number):
            raise FormulaError("Formula produced a non-finite value")
        if abs(number) >= MAX_AMOUNT:
            raise FormulaError("Formula result is out of range")
        return number


def compile_formula(source: Optional[str]) -> CommissionFormula:
    text = (source or "").strip()
    if not text:
        raise FormulaError("Commission formula is empty")
    if len(text) > MAX_FORMULA_LENGTH:
        raise FormulaError("Commission formula is too long")
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as exc:
        raise FormulaError(f"Commission formula is not a valid expression: {exc.msg}") from exc
    _validate(tree.body)
    rate = None
    if isinstance(tree.body, ast.Constant):
        try:
            rate = float(tree.body.value)
        except OverflowError as exc:
            raise FormulaError("Commission rate is out of range") from exc
    return CommissionFormula(source=text, tree=tree, rate_per_order=rate)


def _validate(node: ast.AST) -> None:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError("Only numeric constants are allowed")
        return
    if isinstance(node, ast.Name):
        if node.id not in FORMULA_VARIABLES:
            raise FormulaError(f"Unknown variable '{node.id}'")
        return
    if isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPERATORS:
            raise FormulaError("Unsupported operator")
        _validate(node.left)
        _validate(node.right)
        return
    if isinstance(node, ast.UnaryOp):
        if not isinstance(node.op, (ast.UAdd, ast.USub, ast.Not)):
            raise FormulaError("Unsupported operator")
        _validate(node.operand)
        return
    if isinstance(node, ast.BoolOp):
        for value in node.values:
            _validate(value)
        return
    if isinstance(node, ast.Compare):
        if any(type(op) not in _COMPARE_OPERATORS for op in node.ops):
            raise FormulaError("Unsupported comparison")
        _validate(node.left)
        for comparator in node.comparators:
            _validate(comparator)
        return
    if isinstance(node, ast.IfExp):
        _validate(node.test)
        _validate(node.body)
        _validate(node.orelse)
        return
    if isinstance(node, ast.Call):
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            raise FormulaError("Unsupported function call")
        if node.keywords or not node.args:
            raise FormulaError("Functions take positional arguments only")
        for arg in node.args:
            _validate(arg)
        return
    raise FormulaError(f"Unsupported expression element: {type(node).__name__}")


def _evaluate(node: ast.AST, variables: Mapping[str, float]) -> Any:
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, ast.Name):
        return float(variables.get(node.id, 0))
    if isinstance(node, ast.BinOp):
        left = _evaluate(node.left, variables)
        right = _evaluate(node.right, variables)
        if isinstance(node.op, ast.Pow):
            if abs(right) > MAX_EXPONENT:
                raise ValueError("exponent too large")
            # Float powers overflow instead of growing unbounded integers.
            return operator.pow(float(left), right)
        return _BINARY_OPERATORS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp):
        operand = _evaluate(node.operand, variables)
        if isinstance(node.op, ast.Not):
            return not operand
        return _UNARY_OPERATORS[type(node.op)](operand)
    if isinstance(node, ast.BoolOp):
        if isinstance(node.op, ast.And):
            result: Any = True
            for value in node.values:
                result = _evaluate(value, variables)
                if not result:
                    return result
            return result
        result = False
        for value in node.values:
            result = _evaluate(value, variables)
            if result:
                return result
        return result
    if isinstance(node, ast.Compare):
        left = _evaluate(node.left, variables)
        for op, comparator in zip(node.ops, node.comparators):
            right = _evaluate(comparator, variables)
            if not _COMPARE_OPERATORS[type(op)](left, right):
                return False
            left = right
        return True
    if isinstance(node, ast.IfExp):
        if _evaluate(node.test, variables):
            return _evaluate(node.body, variables)
        return _evaluate(node.orelse, variables)
    if isinstance(node, ast.Call):
        args = [_evaluate(arg, variables) for arg in node.args]
        return _FUNCTIONS[node.func.id](*args)
    raise FormulaError(f"Unsupported expression element: {type(node).__name__}")
