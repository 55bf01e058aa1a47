"""
Python type annotation resolution to module-qualified type references
"""

import ast
import copy
from typing import Dict, List, Optional, Sequence, Set

from ..core.config import (
    ANNOTATED_HEADS, BUILTIN_NAMES, HEAD_KINDS, LITERAL_HEADS, TYPEVAR_CALLS,
)
from ..core.errors import UnresolvableType
from ..core.models import Expression, TypeKind, TypeParam, TypeRef
from ..parser import ModuleContext, find_module_file


def dotted_name(node: ast.expr) -> Optional[str]:
    """Full dotted name of a Name/Attribute chain, or None"""
    parts = []
    current = node
    while isinstance(current, ast.Attribute):
        parts.append(current.attr)
        current = current.value
    if not isinstance(current, ast.Name):
        return None
    parts.append(current.id)
    return ".".join(reversed(parts))


def head_key(ref: TypeRef):
    """(module, name) identity of a subscript head, as used by the config tables"""
    if ref.kind == TypeKind.BUILTIN:
        return ("builtins", ref.name)
    return (ref.module, ref.name)


class TypeResolver(ast.NodeVisitor):
    """Resolves annotation expressions found in one module"""

    def __init__(self,
                 context: ModuleContext,
                 scope_params: Optional[Dict[str, TypeParam]] = None):
        self.context = context
        self.scope_params = dict(scope_params or {})
        self._module_params: Dict[str, TypeParam] = {}
        self._resolving: Set[str] = set()

    def with_params(self, params: Sequence[TypeParam]) -> "TypeResolver":
        """Resolver for a nested scope that also sees PEP 695 parameters"""
        scope = dict(self.scope_params)
        scope.update((p.name, p) for p in params)
        child = TypeResolver(self.context, scope)
        child._module_params = self._module_params
        return child

    def resolve(self, node: Optional[ast.expr]) -> TypeRef:
        """Resolve an annotation; a missing annotation means typing.Any"""
        if node is None:
            return TypeRef.any()
        return self.visit(node)

    def unresolvable(self, node: ast.AST, name: Optional[str] = None) -> UnresolvableType:
        return UnresolvableType(name or ast.unparse(node), self.context.location(node))

    # Names

    def lookup(self, name: str, node: ast.AST) -> TypeRef:
        if name in self.scope_params:
            return self._param_ref(self.scope_params[name])
        if name in self.context.type_vars:
            return self._param_ref(self.module_param(name))
        if name in self.context.declared:
            return TypeRef.named(self.context.module, name)
        if name in self.context.imports:
            target = self.context.imports[name]
            if target.attr:
                return TypeRef.named(target.module, target.attr)
            raise self.unresolvable(node, name)
        if name in BUILTIN_NAMES or name == "None":
            return TypeRef.builtin(name)
        raise self.unresolvable(node, name)

    def lookup_dotted(self, dotted: str, node: ast.AST) -> TypeRef:
        parts = dotted.split(".")
        first, rest = parts[0], parts[1:]
        if first in self.context.declared:
            return TypeRef.named(self.context.module, dotted)
        target = self.context.imports.get(first)
        if target is None:
            raise self.unresolvable(node, dotted)
        if target.attr:
            submodule = f"{target.module}.{target.attr}" if target.module else target.attr
            if rest and find_module_file(self.context.root, submodule) is not None:
                return TypeRef.named(submodule, ".".join(rest))
            return TypeRef.named(target.module, ".".join([target.attr] + rest))
        module = target.module
        if module == first:
            for i in range(len(parts) - 1, 0, -1):
                prefix = ".".join(parts[:i])
                if prefix in self.context.imported_modules:
                    module, rest = prefix, parts[i:]
                    break
        return TypeRef.named(module, ".".join(rest))

    def _param_ref(self, param: TypeParam) -> TypeRef:
        return TypeRef(TypeKind.TYPE_PARAM, name=param.name, param=param)

    def module_param(self, name: str) -> TypeParam:
        """TypeParam for a module-level `X = TypeVar("X", ...)` assignment"""
        if name in self._module_params:
            return self._module_params[name]
        call = self.context.type_vars[name]
        if name in self._resolving:
            raise self.unresolvable(call, name)
        self._resolving.add(name)
        try:
            func = self.resolve_callee(call.func)
            if func not in TYPEVAR_CALLS:
                raise self.unresolvable(call.func)
            constraints = tuple(self.resolve(arg) for arg in call.args[1:])
            bound = None
            variance = ""
            for keyword in call.keywords:
                if keyword.arg == "bound":
                    bound = self.resolve(keyword.value)
                elif keyword.arg in ("covariant", "contravariant"):
                    if isinstance(keyword.value, ast.Constant) and keyword.value.value is True:
                        variance = keyword.arg
            param = TypeParam(name=name, bound=bound, constraints=constraints, variance=variance)
        finally:
            self._resolving.discard(name)
        self._module_params[name] = param
        return param

    def resolve_callee(self, node: ast.expr):
        dotted = dotted_name(node)
        if dotted is None:
            raise self.unresolvable(node)
        ref = self.lookup_dotted(dotted, node) if "." in dotted else self.lookup(dotted, node)
        return head_key(ref)

    def pep695_params(self, nodes: Sequence[ast.AST]) -> List[TypeParam]:
        """TypeParams for a PEP 695 `[T, U: Bound]` list"""
        params: List[TypeParam] = []
        resolver = self
        for node in nodes:
            if type(node).__name__ != "TypeVar":
                raise self.unresolvable(node, getattr(node, "name", type(node).__name__))
            bound = None
            constraints = ()
            if node.bound is not None:
                if isinstance(node.bound, ast.Tuple):
                    constraints = tuple(resolver.resolve(e) for e in node.bound.elts)
                else:
                    bound = resolver.resolve(node.bound)
            params.append(TypeParam(name=node.name, bound=bound, constraints=constraints))
            resolver = self.with_params(params)
        return params

    # Annotation forms

    def visit_Name(self, node: ast.Name) -> TypeRef:
        return self.lookup(node.id, node)

    def visit_Attribute(self, node: ast.Attribute) -> TypeRef:
        dotted = dotted_name(node)
        if dotted is None:
            raise self.unresolvable(node)
        return self.lookup_dotted(dotted, node)

    def visit_Constant(self, node: ast.Constant) -> TypeRef:
        if node.value is None:
            return TypeRef.builtin("None")
        if node.value is Ellipsis:
            return TypeRef(TypeKind.ELLIPSIS)
        if isinstance(node.value, str):
            try:
                parsed = ast.parse(node.value.strip(), mode="eval")
            except SyntaxError:
                raise self.unresolvable(node, node.value) from None
            return self.visit(ast.copy_location(parsed.body, node))
        raise self.unresolvable(node)

    def visit_Subscript(self, node: ast.Subscript) -> TypeRef:
        head = self.visit(node.value)
        if isinstance(node.slice, ast.Tuple):
            elts = node.slice.elts
        else:
            elts = [node.slice]
        key = head_key(head)

        if key in ANNOTATED_HEADS:
            return self.visit(elts[0])
        if key in LITERAL_HEADS:
            args = tuple(self.literal(elt) for elt in elts)
        else:
            args = tuple(self.visit(elt) for elt in elts)
        return TypeRef(HEAD_KINDS.get(key, TypeKind.GENERIC), origin=head, args=args)

    def visit_List(self, node: ast.List) -> TypeRef:
        return TypeRef(TypeKind.ARGUMENTS, args=tuple(self.visit(elt) for elt in node.elts))

    def visit_BinOp(self, node: ast.BinOp) -> TypeRef:
        if not isinstance(node.op, ast.BitOr):
            raise self.unresolvable(node)
        members = []
        for side in (self.visit(node.left), self.visit(node.right)):
            if side.kind == TypeKind.UNION:
                members.extend(side.args)
            else:
                members.append(side)
        return TypeRef(TypeKind.UNION, args=tuple(members))

    def generic_visit(self, node: ast.AST) -> TypeRef:
        raise self.unresolvable(node)

    # Value expressions (defaults, Literal arguments)

    def literal(self, node: ast.expr) -> TypeRef:
        expression = self.expression(node)
        return TypeRef(TypeKind.LITERAL, name=expression.text)

    def expression(self, node: ast.expr) -> Expression:
        """Qualify every name in a value expression so it evaluates in another module"""
        qualifier = _ExpressionQualifier(self)
        qualified = qualifier.visit(_clone(node))
        return Expression(text=ast.unparse(qualified), modules=tuple(sorted(qualifier.modules)))


def _clone(node: ast.expr) -> ast.expr:
    return copy.deepcopy(node)


class _ExpressionQualifier(ast.NodeTransformer):

    def __init__(self, resolver: TypeResolver):
        self.resolver = resolver
        self.modules: Set[str] = set()

    def _replace(self, ref: TypeRef, node: ast.expr) -> ast.expr:
        if ref.kind != TypeKind.NAMED:
            return node
        self.modules.add(ref.module)
        return ast.parse(ref.render(), mode="eval").body

    def visit_Name(self, node: ast.Name) -> ast.expr:
        if node.id in self.resolver.context.type_vars or node.id in self.resolver.scope_params:
            raise self.resolver.unresolvable(node, node.id)
        return self._replace(self.resolver.lookup(node.id, node), node)

    def visit_Attribute(self, node: ast.Attribute) -> ast.expr:
        dotted = dotted_name(node)
        if dotted is None:
            return self.generic_visit(node)
        return self._replace(self.resolver.lookup_dotted(dotted, node), node)
