import inspect
import re
from typing import Any, Callable

from pydantic import BaseModel, Field

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}


class ToolCallResult(BaseModel):
    tool_name: str
    output: Any = None


def _parse_param_descriptions(func: Callable) -> dict[str, str]:
    """Read ``name: description`` lines from a Google-style ``Args:`` block."""
    doc = inspect.getdoc(func) or ""
    match = re.search(r"^Args:\s*\n((?:[ \t]+.*\n?)+)", doc, re.MULTILINE)
    if not match:
        return {}
    descriptions = {}
    for line in match.group(1).splitlines():
        m = re.match(r"\s+(\w+)(?:\s*\([^)]*\))?:\s*(.+)", line)
        if m:
            descriptions[m.group(1)] = m.group(2).strip()
    return descriptions


def _build_parameters_schema(func: Callable) -> tuple[dict, list[str]]:
    descriptions = _parse_param_descriptions(func)
    properties: dict[str, dict] = {}
    required: list[str] = []
    for name, param in inspect.signature(func).parameters.items():
        prop = {"type": _JSON_TYPES.get(param.annotation, "string")}
        if name in descriptions:
            prop["description"] = descriptions[name]
        properties[name] = prop
        if param.default is inspect.Parameter.empty:
            required.append(name)
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema, required


class Tool(BaseModel):
    """A callable exposed to the model as an OpenAI function tool.

    Build one with the :func:`tool` decorator, or directly when the
    parameters schema is written by hand.
    """

    func: Callable = Field(exclude=True)
    name: str
    description: str = ""
    parameters_schema: dict = Field(default_factory=lambda: {
        "type": "object", "properties": {},
    })

    model_config = {"arbitrary_types_allowed": True}

    def model_dump(self, **kwargs) -> dict:
        """Return the function-tool schema sent to the provider."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema,
            },
        }

    async def __call__(self, **kwargs) -> ToolCallResult:
        output = self.func(**kwargs)
        if inspect.isawaitable(output):
            output = await output
        return ToolCallResult(tool_name=self.name, output=output)


def tool(func: Callable) -> Tool:
    """Turn a plain or async function into a :class:`Tool`.

    The first paragraph of the docstring becomes the description and
    the ``Args:`` block documents the parameters.
    """
    schema, _ = _build_parameters_schema(func)
    doc = inspect.getdoc(func) or ""
    return Tool(
        func=func,
        name=func.__name__,
        description=doc.split("\n\n")[0].strip(),
        parameters_schema=schema,
    )
