"""
Protocol generation from a Contract derived from free functions
"""

from typing import List

from ..core.errors import EmptyContract
from ..core.models import Contract
from .common import GENERATED_MARKER, method_header, render_generic_base, render_imports, render_type_var


def generate_interface(contract: Contract, package_name: str = "") -> str:
    """
    Generate a typing.Protocol declaring every method of a contract.

    The result can be located again with ContractLocator, which is how a
    derived interface feeds back into fake generation.

    Args:
        contract: Contract to declare
        package_name: Destination package, named in the module docstring

    Raises:
        EmptyContract: The contract has no methods
    """
    if not contract.methods:
        raise EmptyContract(contract.name)

    lines: List[str] = [f'"""{GENERATED_MARKER}', ""]
    source = contract.package.module or contract.package.path
    target = f" in package {package_name}" if package_name else ""
    lines.append(f"{contract.name} declares the exported functions of {source}{target}.")
    lines.extend(['"""', "from __future__ import annotations", ""])
    lines.extend(render_imports(contract.modules() | {"typing"}))

    type_params = contract.all_type_params()
    if type_params:
        lines.append("")
        lines.extend(render_type_var(param) for param in type_params)

    lines.extend(["", ""])
    if contract.type_params:
        lines.append(f"class {contract.name}({render_generic_base(contract.type_params, 'typing.Protocol')}):")
    else:
        lines.append(f"class {contract.name}(typing.Protocol):")

    for index, method in enumerate(contract.methods):
        if index:
            lines.append("")
        lines.append("    " + method_header(method))
        lines.append("        ...")

    return "\n".join(lines) + "\n"
