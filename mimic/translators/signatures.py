"""
Function definition translation to method signatures
"""

import ast
from typing import List, Optional, Tuple

from ..core.config import TUPLE_HEADS
from ..core.errors import UnresolvableType
from ..core.models import (
    MethodSignature, Parameter, ParameterKind, Return, TypeKind, TypeRef,
)
from ..parser import FunctionNode
from .types import TypeResolver, head_key


def split_returns(ref: TypeRef) -> Tuple[Return, ...]:
    """
    One Return per value the function hands back.

    `-> None` returns nothing; a fixed-arity tuple annotation such as
    `Tuple[int, str]` returns one value per element; anything else is a
    single value.
    """
    if ref.kind == TypeKind.BUILTIN and ref.name == "None":
        return ()
    if (ref.kind == TypeKind.SEQUENCE
            and head_key(ref.origin) in TUPLE_HEADS
            and ref.args
            and all(arg.kind != TypeKind.ELLIPSIS for arg in ref.args)):
        return tuple(Return(type=arg) for arg in ref.args)
    return (Return(type=ref),)


def _defaults(defaults: List[ast.expr], count: int) -> List[Optional[ast.expr]]:
    """Right-align positional defaults against `count` parameters"""
    return [None] * (count - len(defaults)) + list(defaults)


def translate_signature(node: FunctionNode,
                        resolver: TypeResolver,
                        is_method: bool = True) -> MethodSignature:
    """
    Build a MethodSignature from a `def` or `async def`.

    Args:
        node: Function definition
        resolver: Resolver for the module the function lives in
        is_method: Drop the first (self) parameter

    Raises:
        UnresolvableType: annotated with the function name
    """
    try:
        type_params = getattr(node, "type_params", None) or []
        if type_params:
            resolver = resolver.with_params(resolver.pep695_params(type_params))
        parameters = _parameters(node.args, resolver, is_method)
        returns = split_returns(resolver.resolve(node.returns))
    except UnresolvableType as e:
        raise e.in_method(node.name) from None

    return MethodSignature(
        name=node.name,
        parameters=tuple(parameters),
        returns=returns,
        is_async=isinstance(node, ast.AsyncFunctionDef),
        location=resolver.context.location(node),
    )


def _parameters(args: ast.arguments, resolver: TypeResolver, is_method: bool) -> List[Parameter]:
    positional = list(args.posonlyargs) + list(args.args)
    defaults = _defaults(args.defaults, len(positional))
    if is_method and positional:
        positional, defaults = positional[1:], defaults[1:]

    parameters = []
    for arg, default in zip(positional, defaults):
        parameters.append(_parameter(arg, ParameterKind.POSITIONAL, default, resolver))

    if args.vararg is not None:
        element = resolver.resolve(args.vararg.annotation)
        parameters.append(Parameter(
            name=args.vararg.arg,
            type=TypeRef(TypeKind.VARIADIC, args=(element,)),
            kind=ParameterKind.VARIADIC,
        ))

    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        parameters.append(_parameter(arg, ParameterKind.KEYWORD_ONLY, default, resolver))

    if args.kwarg is not None:
        parameters.append(Parameter(
            name=args.kwarg.arg,
            type=resolver.resolve(args.kwarg.annotation),
            kind=ParameterKind.VAR_KEYWORD,
        ))
    return parameters


def _parameter(arg: ast.arg,
               kind: ParameterKind,
               default: Optional[ast.expr],
               resolver: TypeResolver) -> Parameter:
    return Parameter(
        name=arg.arg,
        type=resolver.resolve(arg.annotation),
        kind=kind,
        default=resolver.expression(default) if default is not None else None,
    )
