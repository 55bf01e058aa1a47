"""
Helpers shared by the fake and interface generators
"""

import re
import sys
from typing import Iterable, List, Sequence, Set

from ..core.models import MethodSignature, ParameterKind, TypeKind, TypeParam, TypeRef

GENERATED_MARKER = "Code generated by mimic. DO NOT EDIT."

STDLIB_MODULES = frozenset(sys.stdlib_module_names)

_SNAKE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """FakeHTTPClient -> fake_http_client"""
    return _SNAKE_BOUNDARY.sub("_", name).lower()


def camel_case(name: str) -> str:
    """fetch_all -> FetchAll, getURL -> GetURL"""
    parts = [part for part in name.split("_") if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) or "Method"


class NameAllocator:
    """
    Hands out identifiers that are unique within one namespace.

    Reserved names are never handed out; a taken preferred name gets a
    numeric suffix. Allocation order decides suffixes, so callers must
    allocate in a deterministic order.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._taken: Set[str] = set(reserved)

    def allocate(self, preferred: str) -> str:
        name = preferred
        suffix = 2
        while name in self._taken:
            name = f"{preferred}_{suffix}"
            suffix += 1
        self._taken.add(name)
        return name


def render_imports(modules: Iterable[str]) -> List[str]:
    """`import x` lines, standard library first, each group sorted"""
    wanted = sorted({m for m in modules if m and m != "builtins"})
    stdlib = [m for m in wanted if m.split(".")[0] in STDLIB_MODULES]
    others = [m for m in wanted if m.split(".")[0] not in STDLIB_MODULES]
    lines = [f"import {m}" for m in stdlib]
    if stdlib and others:
        lines.append("")
    lines.extend(f"import {m}" for m in others)
    return lines


def render_type_var(param: TypeParam) -> str:
    """Module-level re-declaration of a type parameter"""
    args = [f'"{param.name}"']
    args.extend(f'"{c.render()}"' for c in param.constraints)
    if param.bound is not None:
        args.append(f'bound="{param.bound.render()}"')
    if param.variance:
        args.append(f"{param.variance}=True")
    return f"{param.name} = typing.TypeVar({', '.join(args)})"


def render_generic_base(params: Sequence[TypeParam], head: str = "typing.Generic") -> str:
    return f"{head}[{', '.join(p.name for p in params)}]"


def render_parameters(method: MethodSignature) -> str:
    """Parameter list of a method definition, self included"""
    rendered = ["self"]
    has_variadic = any(p.kind == ParameterKind.VARIADIC for p in method.parameters)
    star_written = False
    for param in method.parameters:
        annotation = param.type.render()
        if param.kind == ParameterKind.VARIADIC:
            rendered.append(f"*{param.name}: {annotation}")
            star_written = True
            continue
        if param.kind == ParameterKind.VAR_KEYWORD:
            rendered.append(f"**{param.name}: {annotation}")
            continue
        if param.kind == ParameterKind.KEYWORD_ONLY and not has_variadic and not star_written:
            rendered.append("*")
            star_written = True
        text = f"{param.name}: {annotation}"
        if param.default is not None:
            text += f" = {param.default.text}"
        rendered.append(text)
    return ", ".join(rendered)


def return_type(method: MethodSignature) -> TypeRef:
    """The single annotation standing for all of a method's return values"""
    if not method.returns:
        return TypeRef.builtin("None")
    if len(method.returns) == 1:
        return method.returns[0].type
    return TypeRef(
        TypeKind.SEQUENCE,
        origin=TypeRef.named("typing", "Tuple"),
        args=tuple(r.type for r in method.returns),
    )


def method_header(method: MethodSignature) -> str:
    keyword = "async def" if method.is_async else "def"
    return f"{keyword} {method.name}({render_parameters(method)}) -> {return_type(method).render()}:"
