"""
Fake class generation from a Contract
"""

from typing import List, Sequence

from ..core.config import DEFAULT_FAKE_PREFIX, RESULT_FIELD_PREFIX, RUNTIME_MODULE
from ..core.errors import DuplicateMethodName, EmptyContract
from ..core.models import (
    Contract, FakeMember, FakeUnit, MethodSignature, ParameterKind, TypeParam, TypeRef,
)
from ..log import get_logger
from .common import (
    GENERATED_MARKER, NameAllocator, camel_case, method_header, render_generic_base,
    render_imports, render_type_var, return_type,
)

logger = get_logger(__name__)

INDENT = "    "


def _check_unique(contract: Contract) -> None:
    seen = {}
    for method in contract.methods:
        if method.name in seen:
            raise DuplicateMethodName(method.name, contract.name, [seen[method.name], method.location])
        seen[method.name] = method.location


def build_fake_unit(contract: Contract, struct_name: str = "", package_name: str = "") -> FakeUnit:
    """
    Allocate every generated name for a contract.

    Contract method names are reserved first so that no stub, log,
    accessor or record name can shadow a method of the fake.
    """
    if not contract.methods:
        raise EmptyContract(contract.name)
    _check_unique(contract)

    allocator = NameAllocator({m.name for m in contract.methods})
    lock = allocator.allocate("_lock")
    members = []
    for method in contract.methods:
        base = method.name.lstrip("_") or method.name
        camel = camel_case(method.name)
        members.append(FakeMember(
            method=method,
            stub=allocator.allocate(f"{method.name}_stub"),
            calls=allocator.allocate(f"_{base}_calls"),
            returns_slot=allocator.allocate(f"_{base}_returns"),
            call_record=allocator.allocate(f"{camel}Call"),
            returns_record=allocator.allocate(f"{camel}Returns") if method.returns else "",
            calls_accessor=allocator.allocate(f"{method.name}_calls"),
            count_accessor=allocator.allocate(f"{method.name}_call_count"),
            args_accessor=allocator.allocate(f"{method.name}_args_for_call"),
            returns_setter=allocator.allocate(f"{method.name}_returns") if method.returns else "",
            return_fields=_return_fields(method),
        ))

    return FakeUnit(
        struct_name=struct_name or f"{DEFAULT_FAKE_PREFIX}{contract.name}",
        package_name=package_name,
        contract=contract,
        members=tuple(members),
        lock=lock,
    )


def _return_fields(method: MethodSignature):
    """Field names for the canned-return record: source names, else result1, result2, ..."""
    fields = NameAllocator({r.name for r in method.returns if r.name})
    names = []
    for position, ret in enumerate(method.returns, start=1):
        names.append(ret.name or fields.allocate(f"{RESULT_FIELD_PREFIX}{position}"))
    return tuple(names)


def _params_of(types: Sequence[TypeRef]) -> List[TypeParam]:
    found: List[TypeParam] = []
    for typ in types:
        for param in typ.type_params():
            if param.name not in {p.name for p in found}:
                found.append(param)
    return found


def _record_ref(unit: FakeUnit, record: str, params: Sequence[TypeParam]) -> str:
    ref = f"{unit.struct_name}.{record}"
    if params:
        ref += "[" + ", ".join(p.name for p in params) + "]"
    return ref


def _stub_type(member: FakeMember) -> str:
    method = member.method
    result = return_type(method).render()
    if method.is_async:
        result = f"typing.Awaitable[{result}]"
    if all(p.kind == ParameterKind.POSITIONAL for p in method.parameters):
        args = "[" + ", ".join(p.type.render() for p in method.parameters) + "]"
    else:
        args = "..."
    return f"typing.Optional[typing.Callable[{args}, {result}]]"


def _call_arguments(member: FakeMember) -> str:
    parts = []
    for param in member.method.parameters:
        if param.kind == ParameterKind.POSITIONAL:
            parts.append(param.name)
        elif param.kind == ParameterKind.VARIADIC:
            parts.append(f"*{param.name}")
        elif param.kind == ParameterKind.KEYWORD_ONLY:
            parts.append(f"{param.name}={param.name}")
        else:
            parts.append(f"**{param.name}")
    return ", ".join(parts)


def _record_arguments(member: FakeMember) -> str:
    parts = []
    for param in member.method.parameters:
        if param.kind == ParameterKind.VARIADIC:
            parts.append(f"{param.name}=[*{param.name}]")
        elif param.kind == ParameterKind.VAR_KEYWORD:
            parts.append(f"{param.name}={{**{param.name}}}")
        else:
            parts.append(f"{param.name}={param.name}")
    return ", ".join(parts)


def _has_mutable_fields(method: MethodSignature) -> bool:
    return any(p.kind in (ParameterKind.VARIADIC, ParameterKind.VAR_KEYWORD) for p in method.parameters)


def _snapshot(method: MethodSignature, record: str) -> str:
    """Copy of a call record whose *args list and **kwargs dict are not shared with the log"""
    changes = []
    for param in method.parameters:
        if param.kind == ParameterKind.VARIADIC:
            changes.append(f"{param.name}=list({record}.{param.name})")
        elif param.kind == ParameterKind.VAR_KEYWORD:
            changes.append(f"{param.name}=dict({record}.{param.name})")
    return f"dataclasses.replace({record}, {', '.join(changes)})"


class FakeGenerator:
    """
    Renders a FakeUnit as Python source.

    Each contract method gets:
        <method>_stub          optional replacement implementation
        _<method>_calls        append-only log of call records
        _<method>_returns      canned return values
        <method>_calls()       snapshot of the log (read lock)
        <method>_call_count()  length of the log (read lock)
        <method>_args_for_call(i)
        <method>_returns(...)  set the canned return values (write lock)
    """

    def __init__(self, unit: FakeUnit):
        self.unit = unit
        self.lines: List[str] = []

    def emit(self, text: str = "", depth: int = 0) -> None:
        self.lines.append(INDENT * depth + text if text else "")

    def render(self) -> str:
        unit = self.unit
        contract = unit.contract
        self._header()

        self.emit("from __future__ import annotations")
        self.emit()
        modules = contract.modules() | {"dataclasses", "typing", RUNTIME_MODULE}
        for line in render_imports(modules):
            self.emit(line)

        type_params = contract.all_type_params()
        if type_params:
            self.emit()
            for param in type_params:
                self.emit(render_type_var(param))

        self.emit()
        self.emit()
        if contract.type_params:
            self.emit(f"class {unit.struct_name}({render_generic_base(contract.type_params)}):")
        else:
            self.emit(f"class {unit.struct_name}:")

        for member in unit.members:
            self._records(member)
        self._init()
        for member in unit.members:
            self._method(member)
            self._accessors(member)

        return "\n".join(self.lines) + "\n"

    def _header(self) -> None:
        unit = self.unit
        contract = unit.contract
        source = f"{contract.package.module}.{contract.name}" if contract.package.module else contract.name
        self.emit(f'"""{GENERATED_MARKER}')
        self.emit()
        target = f" for package {unit.package_name}" if unit.package_name else ""
        self.emit(f"{unit.struct_name} is a fake implementation of {source}{target}.")
        self.emit()
        self.emit("Every method records its arguments and then runs the stub if one is")
        self.emit("set, or returns the canned values. Stubs run while the fake holds its")
        self.emit("write lock: a stub must not call back into the same fake instance.")
        self.emit("Async methods wait for the lock off the event loop but still hold it")
        self.emit("across the awaited stub.")
        self.emit('"""')

    def _record_class(self, name: str, fields: Sequence[str], types: Sequence[TypeRef]) -> None:
        params = _params_of(types)
        self.emit()
        self.emit("@dataclasses.dataclass(frozen=True)", 1)
        if params:
            self.emit(f"class {name}({render_generic_base(params)}):", 1)
        else:
            self.emit(f"class {name}:", 1)
        if not fields:
            self.emit("pass", 2)
        for field_name, typ in zip(fields, types):
            self.emit(f"{field_name}: {typ.render()}", 2)

    def _records(self, member: FakeMember) -> None:
        method = member.method
        self._record_class(
            member.call_record,
            [p.name for p in method.parameters],
            [p.record_type() for p in method.parameters],
        )
        if method.returns:
            self._record_class(member.returns_record, member.return_fields, [r.type for r in method.returns])

    def _init(self) -> None:
        self.emit()
        self.emit("def __init__(self) -> None:", 1)
        self.emit(f"self.{self.unit.lock} = {RUNTIME_MODULE}.RWLock()", 2)
        for member in self.unit.members:
            method = member.method
            call_params = _params_of([p.record_type() for p in method.parameters])
            self.emit(f"self.{member.stub}: {_stub_type(member)} = None", 2)
            self.emit(
                f"self.{member.calls}: typing.List[{_record_ref(self.unit, member.call_record, call_params)}] = []",
                2,
            )
            if method.returns:
                returns_params = _params_of([r.type for r in method.returns])
                returns_ref = _record_ref(self.unit, member.returns_record, returns_params)
                self.emit(f"self.{member.returns_slot}: typing.Optional[{returns_ref}] = None", 2)

    def _method(self, member: FakeMember) -> None:
        method = member.method
        awaiting = "await " if method.is_async else ""
        stub_call = f"{awaiting}self.{member.stub}({_call_arguments(member)})"

        self.emit()
        self.emit(method_header(method), 1)
        if method.is_async:
            self.emit(f"async with self.{self.unit.lock}.write_async():", 2)
        else:
            self.emit(f"with self.{self.unit.lock}.write():", 2)
        self.emit(f"self.{member.calls}.append(self.{member.call_record}({_record_arguments(member)}))", 3)
        self.emit(f"if self.{member.stub} is not None:", 3)
        if not method.returns:
            self.emit(stub_call, 4)
            return
        self.emit(f"return {stub_call}", 4)
        self.emit(f"if self.{member.returns_slot} is None:", 3)
        if len(method.returns) == 1:
            self.emit("return None", 4)
            self.emit(f"return self.{member.returns_slot}.{member.return_fields[0]}", 3)
        else:
            self.emit("return (" + ", ".join("None" for _ in method.returns) + ")", 4)
            values = ", ".join(f"self.{member.returns_slot}.{name}" for name in member.return_fields)
            self.emit(f"return ({values})", 3)

    def _accessors(self, member: FakeMember) -> None:
        method = member.method
        call_params = _params_of([p.record_type() for p in method.parameters])
        record = _record_ref(self.unit, member.call_record, call_params)

        self.emit()
        self.emit(f"def {member.calls_accessor}(self) -> typing.List[{record}]:", 1)
        self.emit(f"with self.{self.unit.lock}.read():", 2)
        if _has_mutable_fields(method):
            self.emit(f"return [{_snapshot(method, 'call')} for call in self.{member.calls}]", 3)
        else:
            self.emit(f"return list(self.{member.calls})", 3)

        self.emit()
        self.emit(f"def {member.count_accessor}(self) -> int:", 1)
        self.emit(f"with self.{self.unit.lock}.read():", 2)
        self.emit(f"return len(self.{member.calls})", 3)

        self.emit()
        self.emit(f"def {member.args_accessor}(self, i: int) -> {record}:", 1)
        self.emit(f"with self.{self.unit.lock}.read():", 2)
        if _has_mutable_fields(method):
            self.emit(f"call = self.{member.calls}[i]", 3)
            self.emit(f"return {_snapshot(method, 'call')}", 3)
        else:
            self.emit(f"return self.{member.calls}[i]", 3)

        if not method.returns:
            return
        arguments = ", ".join(
            f"{name}: {ret.type.render()}" for name, ret in zip(member.return_fields, method.returns)
        )
        values = ", ".join(f"{name}={name}" for name in member.return_fields)
        self.emit()
        self.emit(f"def {member.returns_setter}(self, {arguments}) -> None:", 1)
        self.emit(f"with self.{self.unit.lock}.write():", 2)
        self.emit(f"self.{member.returns_slot} = self.{member.returns_record}({values})", 3)


def generate_fake(contract: Contract, struct_name: str = "", package_name: str = "") -> str:
    """
    Generate the source of a fake implementing a contract.

    Args:
        contract: Located or derived contract
        struct_name: Fake class name (default: Fake<Contract>)
        package_name: Destination package, named in the module docstring

    Returns:
        Python source of the fake module

    Raises:
        EmptyContract: The contract has no methods
        DuplicateMethodName: Two methods share a name
    """
    unit = build_fake_unit(contract, struct_name, package_name)
    logger.debug("Generating %s with %d methods", unit.struct_name, len(unit.members))
    return FakeGenerator(unit).render()
