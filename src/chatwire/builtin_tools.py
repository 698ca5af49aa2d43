"""Tools shipped with the built-in math and text agents."""

import ast
import operator
import re

from chatwire.tools import tool

_UNSAFE_CHARS = re.compile(r"[^0-9+\-*/(). ]")
_SENTENCE_END = re.compile(r"[.!?。！？]+")

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _evaluate(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    raise ValueError(f"unsupported expression element: {type(node).__name__}")


def evaluate_expression(expression: str) -> float:
    """Evaluate basic arithmetic after stripping everything else."""
    sanitized = _UNSAFE_CHARS.sub("", expression).strip()
    if not sanitized:
        raise ValueError("empty expression")
    result = _evaluate(ast.parse(sanitized, mode="eval"))
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


@tool
def calculator(expression: str) -> str:
    """Perform basic arithmetic calculations.

    Args:
        expression: Arithmetic expression such as "2 + 3" or "10 * 5".
    """
    try:
        result = evaluate_expression(expression)
    except (ValueError, SyntaxError, ZeroDivisionError) as e:
        return f"Calculation error: {e}"
    return f"Result: {expression} = {result}"


@tool
def text_analysis(text: str) -> dict:
    """Analyse text and count its characters, words, lines and sentences.

    Args:
        text: The text to analyse.
    """
    chars = len(text)
    words = len(text.split())
    lines = len(text.split("\n"))
    sentences = len([s for s in _SENTENCE_END.split(text) if s.strip()])
    return {
        "text": text,
        "characters": chars,
        "words": words,
        "lines": lines,
        "sentences": sentences,
        "summary": (
            f"The text contains {chars} characters, {words} words, "
            f"{lines} lines and {sentences} sentences."
        ),
    }
