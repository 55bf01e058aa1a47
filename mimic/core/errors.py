"""
Error taxonomy for contract extraction and fake synthesis
"""

from typing import List, Optional, Sequence


class MimicError(Exception):
    """Base class for every error mimic reports"""

    kind = "MimicError"


class NotFound(MimicError, LookupError):
    """No declaration with the requested name exists in scope"""

    kind = "NotFound"

    def __init__(self, name: str, path: str, embedded_by: Optional[str] = None):
        self.name = name
        self.path = path
        self.embedded_by = embedded_by
        if embedded_by:
            message = f"Could not find contract '{name}' embedded by '{embedded_by}' (searched {path})"
        else:
            message = f"Could not find contract '{name}' in {path}"
        super().__init__(message)


class Ambiguous(MimicError, LookupError):
    """The same name is declared more than once in scope"""

    kind = "Ambiguous"

    def __init__(self, name: str, locations: Sequence[str]):
        self.name = name
        self.locations: List[str] = list(locations)
        super().__init__(
            f"Found {len(self.locations)} declarations of '{name}': " + ", ".join(self.locations)
        )


class CyclicEmbedding(MimicError):
    """A contract embeds itself, directly or transitively"""

    kind = "CyclicEmbedding"

    def __init__(self, chain: Sequence[str]):
        self.chain: List[str] = list(chain)
        super().__init__("Cyclic contract embedding: " + " -> ".join(self.chain))


class UnresolvableType(MimicError):
    """A type name matches no import, local declaration or builtin"""

    kind = "UnresolvableType"

    def __init__(self, type_name: str, location: str = "", method: Optional[str] = None):
        self.type_name = type_name
        self.location = location
        self.method = method
        message = f"Cannot resolve type '{type_name}'"
        if method:
            message += f" in method '{method}'"
        if location:
            message += f" ({location})"
        super().__init__(message)

    def in_method(self, method: str) -> "UnresolvableType":
        """Copy of this error annotated with the method it was found in"""
        return UnresolvableType(self.type_name, self.location, method)


class DuplicateMethodName(MimicError):
    """Two members of one contract ended up with the same name"""

    kind = "DuplicateMethodName"

    def __init__(self, name: str, contract: str, locations: Sequence[str] = ()):
        self.name = name
        self.contract = contract
        self.locations: List[str] = list(locations)
        message = f"Duplicate method '{name}' in contract '{contract}'"
        if self.locations:
            message += " (" + ", ".join(self.locations) + ")"
        super().__init__(message)


class EmptyContract(MimicError):
    """Nothing to generate: the contract declares no methods"""

    kind = "EmptyContract"

    def __init__(self, contract: str):
        self.contract = contract
        super().__init__(f"Contract '{contract}' has no methods")


class NoExportedFunctions(MimicError):
    """A function-set scan found no exported functions"""

    kind = "NoExportedFunctions"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No exported functions found in {path}")
