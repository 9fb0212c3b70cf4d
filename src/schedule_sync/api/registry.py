"""Registry of the operations exposed over HTTP and the CLI.

Every operation acts on behalf of one signed-in user. The ``user_id``
parameter is therefore never part of the caller-visible schema: the
transport resolves it and :func:`call_as_user` overwrites anything the
caller sent under that name.
"""

from __future__ import annotations

import inspect
import types
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union, get_args, get_origin

JsonSchema = Dict[str, Any]

USER_ID_PARAMETER = "user_id"

_SCALAR_TYPES: Dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


def _schema_for(annotation: Any) -> JsonSchema:
    if annotation in _SCALAR_TYPES:
        return {"type": _SCALAR_TYPES[annotation]}
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return _schema_for(members[0]) if len(members) == 1 else {}
    if origin in (list, List) or annotation is list:
        item_args = get_args(annotation)
        return {"type": "array", "items": _schema_for(item_args[0])} if item_args else {"type": "array"}
    if origin in (dict, Dict) or annotation is dict:
        return {"type": "object"}
    return {}


@dataclass(frozen=True)
class ApiFunction:
    name: str
    func: Callable[..., Any]
    description: str
    category: str
    writes: bool
    signature: inspect.Signature

    @property
    def is_user_scoped(self) -> bool:
        return USER_ID_PARAMETER in self.signature.parameters

    @property
    def parameter_schema(self) -> JsonSchema:
        properties: JsonSchema = {}
        required: List[str] = []
        for param in self.signature.parameters.values():
            if param.name == USER_ID_PARAMETER:
                continue
            schema = _schema_for(param.annotation)
            if param.default is inspect.Parameter.empty:
                required.append(param.name)
            elif isinstance(param.default, (str, int, float, bool)):
                schema["default"] = param.default
            properties[param.name] = schema
        result: JsonSchema = {"type": "object", "properties": properties}
        if required:
            result["required"] = required
        return result

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "writes": self.writes,
            "requires_user": self.is_user_scoped,
            "parameters": self.parameter_schema,
        }


REGISTRY: Dict[str, ApiFunction] = {}


def register_api(
    name: str,
    *,
    description: str,
    category: str,
    writes: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if name in REGISTRY:
            raise ValueError(f"API function '{name}' is already registered.")
        REGISTRY[name] = ApiFunction(
            name=name,
            func=func,
            description=description,
            category=category,
            writes=writes,
            signature=inspect.signature(func, eval_str=True),
        )
        return func

    return decorator


def get_api_functions(category: Optional[str] = None) -> List[ApiFunction]:
    functions: Iterable[ApiFunction] = REGISTRY.values()
    if category is not None:
        functions = (func for func in functions if func.category == category)
    return sorted(functions, key=lambda func: (func.category, func.name))


def get_api_function(name: str) -> ApiFunction:
    if name not in REGISTRY:
        raise KeyError(f"API function '{name}' is not registered.")
    return REGISTRY[name]


def call_as_user(name: str, user_id: Optional[str], arguments: Optional[Mapping[str, Any]] = None) -> Any:
    """Invoke ``name`` for ``user_id``; a caller-supplied ``user_id`` argument is discarded."""

    api_function = get_api_function(name)
    kwargs = dict(arguments or {})
    kwargs.pop(USER_ID_PARAMETER, None)
    if api_function.is_user_scoped:
        kwargs[USER_ID_PARAMETER] = user_id
    return api_function.func(**kwargs)
