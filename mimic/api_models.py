"""
Data models for the mimic API
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class MethodInfo:
    """Summary of one contract method"""
    name: str
    signature: str
    location: str
    is_async: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "signature": self.signature,
            "location": self.location,
            "is_async": self.is_async
        }


@dataclass
class ContractInfo:
    """A located or derived contract"""
    name: str
    module: str
    location: str
    type_params: List[str] = field(default_factory=list)
    methods: List[MethodInfo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "module": self.module,
            "location": self.location,
            "type_params": self.type_params,
            "methods": [m.to_dict() for m in self.methods]
        }


@dataclass
class GeneratedSource:
    """Output of one generation run"""
    name: str
    file_name: str
    source: str
    contract: ContractInfo

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "file_name": self.file_name,
            "source": self.source,
            "contract": self.contract.to_dict()
        }
