"""
Data models for contracts, method signatures and resolved type references
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple


class TypeKind(str, Enum):
    """Shape of a resolved type reference"""
    BUILTIN = "builtin"
    NAMED = "named"
    OPTIONAL = "optional"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    VARIADIC = "variadic"
    TYPE_PARAM = "type_param"
    CALLABLE = "callable"
    GENERIC = "generic"
    UNION = "union"
    LITERAL = "literal"
    ARGUMENTS = "arguments"
    ELLIPSIS = "ellipsis"


SUBSCRIPT_KINDS = frozenset({
    TypeKind.OPTIONAL,
    TypeKind.SEQUENCE,
    TypeKind.MAPPING,
    TypeKind.CALLABLE,
    TypeKind.GENERIC,
})


@dataclass(frozen=True)
class TypeParam:
    """A generic type parameter (TypeVar) declaration"""
    name: str
    bound: Optional["TypeRef"] = None
    constraints: Tuple["TypeRef", ...] = ()
    variance: str = ""  # "", "covariant" or "contravariant"


@dataclass(frozen=True)
class TypeRef:
    """
    A type reference resolved against its defining module.

    Qualification is decided once, at extraction time: NAMED references
    always carry the module that defines them, builtins and type
    parameters carry none. render() only joins the pieces.
    """
    kind: TypeKind
    name: str = ""
    module: str = ""
    origin: Optional["TypeRef"] = None
    args: Tuple["TypeRef", ...] = ()
    param: Optional[TypeParam] = None

    @classmethod
    def builtin(cls, name: str) -> "TypeRef":
        return cls(TypeKind.BUILTIN, name=name)

    @classmethod
    def named(cls, module: str, name: str) -> "TypeRef":
        return cls(TypeKind.NAMED, name=name, module=module)

    @classmethod
    def any(cls) -> "TypeRef":
        return cls.named("typing", "Any")

    def render(self) -> str:
        """Source text for this type, usable from any module that imports modules()"""
        if self.kind == TypeKind.NAMED:
            return f"{self.module}.{self.name}"
        if self.kind in (TypeKind.BUILTIN, TypeKind.TYPE_PARAM, TypeKind.LITERAL):
            return self.name
        if self.kind == TypeKind.ELLIPSIS:
            return "..."
        if self.kind == TypeKind.VARIADIC:
            return self.args[0].render()
        if self.kind == TypeKind.ARGUMENTS:
            return "[" + ", ".join(arg.render() for arg in self.args) + "]"
        if self.kind == TypeKind.UNION:
            return " | ".join(arg.render() for arg in self.args)
        inner = ", ".join(arg.render() for arg in self.args) if self.args else "()"
        return f"{self.origin.render()}[{inner}]"

    def modules(self) -> Set[str]:
        """Modules that must be imported for render() to be valid"""
        found = set()
        if self.kind == TypeKind.NAMED:
            found.add(self.module)
        if self.origin is not None:
            found |= self.origin.modules()
        for arg in self.args:
            found |= arg.modules()
        if self.param is not None:
            if self.param.bound is not None:
                found |= self.param.bound.modules()
            for constraint in self.param.constraints:
                found |= constraint.modules()
        return found

    def type_params(self) -> List[TypeParam]:
        """Type parameters referenced anywhere in this type, in order of appearance"""
        found: List[TypeParam] = []
        if self.kind == TypeKind.TYPE_PARAM and self.param is not None:
            found.append(self.param)
        if self.origin is not None:
            found.extend(self.origin.type_params())
        for arg in self.args:
            found.extend(arg.type_params())
        return _unique_params(found)

    def substitute(self, mapping: Dict[str, "TypeRef"]) -> "TypeRef":
        """Replace type parameters by name"""
        if not mapping:
            return self
        if self.kind == TypeKind.TYPE_PARAM and self.name in mapping:
            return mapping[self.name]
        origin = self.origin.substitute(mapping) if self.origin is not None else None
        args = tuple(arg.substitute(mapping) for arg in self.args)
        return replace(self, origin=origin, args=args)


def _unique_params(params: List[TypeParam]) -> List[TypeParam]:
    seen = set()
    unique = []
    for param in params:
        if param.name not in seen:
            seen.add(param.name)
            unique.append(param)
    return unique


@dataclass(frozen=True)
class Expression:
    """A resolved default value expression"""
    text: str
    modules: Tuple[str, ...] = ()


class ParameterKind(str, Enum):
    POSITIONAL = "positional"
    VARIADIC = "variadic"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


@dataclass(frozen=True)
class Parameter:
    """One method parameter"""
    name: str
    type: TypeRef
    kind: ParameterKind = ParameterKind.POSITIONAL
    default: Optional[Expression] = None

    @property
    def variadic(self) -> bool:
        return self.kind == ParameterKind.VARIADIC

    def record_type(self) -> TypeRef:
        """Type of the call-record field holding this parameter"""
        if self.kind == ParameterKind.VARIADIC:
            return TypeRef(
                TypeKind.SEQUENCE,
                origin=TypeRef.named("typing", "List"),
                args=(self.type.args[0],),
            )
        if self.kind == ParameterKind.VAR_KEYWORD:
            return TypeRef(
                TypeKind.MAPPING,
                origin=TypeRef.named("typing", "Dict"),
                args=(TypeRef.builtin("str"), self.type),
            )
        return self.type

    def substitute(self, mapping: Dict[str, TypeRef]) -> "Parameter":
        return replace(self, type=self.type.substitute(mapping))


@dataclass(frozen=True)
class Return:
    """One return value; name is empty when the source does not name it"""
    type: TypeRef
    name: str = ""


@dataclass(frozen=True)
class MethodSignature:
    """One contract method"""
    name: str
    parameters: Tuple[Parameter, ...] = ()
    returns: Tuple[Return, ...] = ()
    is_async: bool = False
    location: str = ""

    def same_signature(self, other: "MethodSignature") -> bool:
        return (
            self.parameters == other.parameters
            and self.returns == other.returns
            and self.is_async == other.is_async
        )

    def substitute(self, mapping: Dict[str, TypeRef]) -> "MethodSignature":
        return replace(
            self,
            parameters=tuple(p.substitute(mapping) for p in self.parameters),
            returns=tuple(replace(r, type=r.type.substitute(mapping)) for r in self.returns),
        )

    def types(self) -> List[TypeRef]:
        return [p.type for p in self.parameters] + [r.type for r in self.returns]

    def modules(self) -> Set[str]:
        found = set()
        for typ in self.types():
            found |= typ.modules()
        for param in self.parameters:
            if param.default is not None:
                found.update(param.default.modules)
        return found

    def type_params(self) -> List[TypeParam]:
        found: List[TypeParam] = []
        for typ in self.types():
            found.extend(typ.type_params())
        return _unique_params(found)


@dataclass(frozen=True)
class PackageContext:
    """Where a contract came from: its dotted module and the import root"""
    module: str
    path: str
    root: str


@dataclass(frozen=True)
class Contract:
    """Flattened model of an interface"""
    name: str
    methods: Tuple[MethodSignature, ...]
    package: PackageContext
    type_params: Tuple[TypeParam, ...] = ()
    location: str = ""

    def modules(self) -> Set[str]:
        found = set()
        for method in self.methods:
            found |= method.modules()
        for param in self.type_params:
            found |= TypeRef(TypeKind.TYPE_PARAM, name=param.name, param=param).modules()
        return found

    def all_type_params(self) -> List[TypeParam]:
        """Contract-level parameters first, then the ones only methods use"""
        found = list(self.type_params)
        for method in self.methods:
            found.extend(method.type_params())
        return _unique_params(found)


@dataclass(frozen=True)
class FakeMember:
    """Names generated for one contract method"""
    method: MethodSignature
    stub: str
    calls: str
    returns_slot: str
    call_record: str
    returns_record: str
    calls_accessor: str
    count_accessor: str
    args_accessor: str
    returns_setter: str
    return_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FakeUnit:
    """Everything the fake template needs, derived from one Contract"""
    struct_name: str
    package_name: str
    contract: Contract
    members: Tuple[FakeMember, ...] = field(default_factory=tuple)
    lock: str = "_lock"
