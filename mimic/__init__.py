"""
Mimic: call-recording fake generator for Python contracts
"""

from .core.errors import (
    Ambiguous, CyclicEmbedding, DuplicateMethodName, EmptyContract, MimicError,
    NoExportedFunctions, NotFound, UnresolvableType,
)
from .core.models import Contract, MethodSignature, Parameter, Return, TypeRef
from .core.pipeline import generate
from .extractor import FunctionSetExtractor
from .generators.fake import generate_fake
from .generators.interface import generate_interface
from .locator import ContractLocator

__version__ = "0.1.0"
__all__ = [
    "generate",
    "generate_fake",
    "generate_interface",
    "ContractLocator",
    "FunctionSetExtractor",
    "Contract",
    "MethodSignature",
    "Parameter",
    "Return",
    "TypeRef",
    "MimicError",
    "NotFound",
    "Ambiguous",
    "CyclicEmbedding",
    "UnresolvableType",
    "DuplicateMethodName",
    "EmptyContract",
    "NoExportedFunctions",
]
