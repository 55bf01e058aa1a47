"""
Mimic API - unified interface for contract inspection and fake generation
"""
from pathlib import Path
from typing import Union

from mimic.api_models import ContractInfo, GeneratedSource, MethodInfo
from mimic.core.models import Contract
from mimic.core.pipeline import MODE_DERIVE, MODE_LOCATE, generate
from mimic.generators.common import method_header
from mimic.locator import ContractLocator
from mimic.parser import SourceParser


def contract_info(contract: Contract) -> ContractInfo:
    """Flatten a Contract into its API summary"""
    methods = []
    for method in contract.methods:
        header = method_header(method)
        methods.append(MethodInfo(
            name=method.name,
            signature=header[:-1],
            location=method.location,
            is_async=method.is_async
        ))
    return ContractInfo(
        name=contract.name,
        module=contract.package.module,
        location=contract.location,
        type_params=[p.name for p in contract.type_params],
        methods=methods
    )


class MimicClient:
    """
    Unified API for mimic.

    Example usage:
        client = MimicClient()

        # Inspect a contract
        info = client.locate_contract("app/storage.py", "Store")

        # Generate a fake
        fake = client.generate_fake("app/storage.py", "Store")
        print(fake.source)

    Errors from extraction and generation (MimicError subclasses) are
    raised to the caller unchanged.
    """

    def __init__(self, default_package: str = "fakes"):
        """
        Initialize mimic API.

        Args:
            default_package: Package name used when a request names none
        """
        self.default_package = default_package

    def locate_contract(self, source_path: Union[str, Path], contract_name: str) -> ContractInfo:
        """
        Locate a contract and summarize its flattened methods.

        Args:
            source_path: File or directory to search
            contract_name: Class name to locate
        """
        contract = ContractLocator(SourceParser()).locate(contract_name, source_path)
        return contract_info(contract)

    def generate_fake(self,
                      source_path: Union[str, Path],
                      contract_name: str,
                      fake_name: str = "",
                      package_name: str = "") -> GeneratedSource:
        """
        Generate a fake for a contract.

        Args:
            source_path: File or directory holding the contract
            contract_name: Class name to fake
            fake_name: Fake class name (default: Fake<Contract>)
            package_name: Destination package name
        """
        result = generate(
            source_path,
            contract_name=contract_name,
            fake_name=fake_name,
            package_name=package_name or self.default_package,
            mode=MODE_LOCATE
        )
        return self._generated(result)

    def generate_interface(self,
                           source_dir: Union[str, Path],
                           interface_name: str = "",
                           package_name: str = "") -> GeneratedSource:
        """
        Generate a Protocol from the exported functions of a directory.

        Args:
            source_dir: Directory to scan
            interface_name: Protocol name (default: directory name in CamelCase)
            package_name: Destination package name
        """
        result = generate(
            source_dir,
            contract_name=interface_name,
            package_name=package_name,
            mode=MODE_DERIVE
        )
        return self._generated(result)

    @staticmethod
    def _generated(result) -> GeneratedSource:
        return GeneratedSource(
            name=result["name"],
            file_name=result["file_name"],
            source=result["source"],
            contract=contract_info(result["contract"])
        )
