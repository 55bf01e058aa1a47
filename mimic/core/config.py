"""
Type mappings and configuration constants
"""

import builtins
import os

from .models import TypeKind

# Names available without an import
BUILTIN_NAMES = frozenset(name for name in dir(builtins) if not name.startswith("_"))

# Subscripted heads with a dedicated kind, keyed by (module, name)
HEAD_KINDS = {
    ("typing", "Optional"): TypeKind.OPTIONAL,
    ("builtins", "list"): TypeKind.SEQUENCE,
    ("builtins", "tuple"): TypeKind.SEQUENCE,
    ("builtins", "set"): TypeKind.SEQUENCE,
    ("builtins", "frozenset"): TypeKind.SEQUENCE,
    ("typing", "List"): TypeKind.SEQUENCE,
    ("typing", "Tuple"): TypeKind.SEQUENCE,
    ("typing", "Set"): TypeKind.SEQUENCE,
    ("typing", "FrozenSet"): TypeKind.SEQUENCE,
    ("typing", "Sequence"): TypeKind.SEQUENCE,
    ("typing", "MutableSequence"): TypeKind.SEQUENCE,
    ("typing", "Iterable"): TypeKind.SEQUENCE,
    ("typing", "Iterator"): TypeKind.SEQUENCE,
    ("collections.abc", "Sequence"): TypeKind.SEQUENCE,
    ("collections.abc", "MutableSequence"): TypeKind.SEQUENCE,
    ("collections.abc", "Iterable"): TypeKind.SEQUENCE,
    ("collections.abc", "Iterator"): TypeKind.SEQUENCE,
    ("builtins", "dict"): TypeKind.MAPPING,
    ("typing", "Dict"): TypeKind.MAPPING,
    ("typing", "Mapping"): TypeKind.MAPPING,
    ("typing", "MutableMapping"): TypeKind.MAPPING,
    ("collections.abc", "Mapping"): TypeKind.MAPPING,
    ("collections.abc", "MutableMapping"): TypeKind.MAPPING,
    ("typing", "Callable"): TypeKind.CALLABLE,
    ("collections.abc", "Callable"): TypeKind.CALLABLE,
}

TUPLE_HEADS = frozenset({("builtins", "tuple"), ("typing", "Tuple")})
LITERAL_HEADS = frozenset({("typing", "Literal"), ("typing_extensions", "Literal")})
ANNOTATED_HEADS = frozenset({("typing", "Annotated"), ("typing_extensions", "Annotated")})
TYPEVAR_CALLS = frozenset({("typing", "TypeVar"), ("typing_extensions", "TypeVar")})

# Bases that mark a class as a contract but contribute no methods
MARKER_BASES = frozenset({
    ("builtins", "object"),
    ("typing", "Protocol"),
    ("typing", "Generic"),
    ("typing_extensions", "Protocol"),
    ("abc", "ABC"),
})
GENERIC_MARKERS = frozenset({
    ("typing", "Protocol"),
    ("typing", "Generic"),
    ("typing_extensions", "Protocol"),
})

# Decorators whose members are not instance methods
SKIPPED_DECORATORS = frozenset({
    "staticmethod", "classmethod", "property", "cached_property",
    "setter", "getter", "deleter", "overload",
})

# Files never scanned for exported functions
TEST_FILE_PATTERNS = ("test_*.py", "*_test.py", "conftest.py")

# Naming defaults
DEFAULT_FAKE_PREFIX = "Fake"
DEFAULT_PACKAGE_SUFFIX = "fakes"
RESULT_FIELD_PREFIX = "result"
RUNTIME_MODULE = "mimic.runtime"

# Environment-driven settings
LOG_LEVEL = os.getenv("MIMIC_LOG_LEVEL", "WARNING")
SERVER_HOST = os.getenv("MIMIC_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("MIMIC_PORT", "8000"))
