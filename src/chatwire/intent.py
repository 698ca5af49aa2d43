"""Rule-based routing of a user message to a handling pipeline.

The checks run in a fixed order and the first match wins: math
keywords, then text-analysis keywords, then anything that looks like a
numeric expression.  Everything else is plain chat.
"""

import re
from enum import Enum


class Intent(str, Enum):
    CHAT = "chat"
    MATH = "math"
    TEXT = "text"


MATH_KEYWORDS = (
    "计算", "算", "数学", "加", "减", "乘", "除",
    "+", "-", "*", "/", "=",
    "等于", "求解", "平方", "开方", "幂", "次方",
)

TEXT_KEYWORDS = (
    "分析文本", "统计字数", "分析内容", "文本分析",
    "字符数", "词数", "文本统计", "内容分析",
    "字数", "行数", "句数",
)

_NUMERIC_EXPRESSION = re.compile(r"\d+\s*[+\-*/]\s*\d+")


def classify_intent(message: str) -> Intent:
    lowered = message.lower()
    if any(keyword in lowered for keyword in MATH_KEYWORDS):
        return Intent.MATH
    if any(keyword in lowered for keyword in TEXT_KEYWORDS):
        return Intent.TEXT
    if _NUMERIC_EXPRESSION.search(message):
        return Intent.MATH
    return Intent.CHAT
