"""
Main generation pipeline
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..extractor import FunctionSetExtractor
from ..generators.common import snake_case
from ..generators.fake import build_fake_unit, FakeGenerator
from ..generators.interface import generate_interface
from ..locator import ContractLocator
from ..log import get_logger
from ..parser import SourceParser

logger = get_logger(__name__)

MODE_LOCATE = "locate-existing"
MODE_DERIVE = "derive-from-functions"
MODES = (MODE_LOCATE, MODE_DERIVE)


def generate(source_path: Union[str, Path],
             contract_name: str = "",
             fake_name: str = "",
             package_name: str = "",
             mode: str = MODE_LOCATE,
             parser: Optional[SourceParser] = None) -> Dict[str, Any]:
    """
    Generate a fake for a contract, or a Protocol for a set of functions.

    Args:
        source_path: File or directory holding the contract (locate mode),
            or directory of functions (derive mode)
        contract_name: Contract to locate; in derive mode an optional name
            for the derived Protocol
        fake_name: Fake class name (default: Fake<Contract>)
        package_name: Destination package name
        mode: "locate-existing" or "derive-from-functions"
        parser: Optional shared SourceParser

    Returns:
        Dict with:
            - source: generated Python source
            - file_name: suggested output file name
            - name: name of the generated class
            - contract: the Contract model

    Raises:
        ValueError: Unknown mode, or no contract name in locate mode
        MimicError: Any extraction or generation error; nothing is
            returned when one is raised
    """
    if mode not in MODES:
        raise ValueError(f"Unknown mode '{mode}', expected one of {', '.join(MODES)}")
    parser = parser or SourceParser()

    if mode == MODE_DERIVE:
        contract = FunctionSetExtractor(parser).extract(source_path, contract_name)
        source = generate_interface(contract, package_name)
        file_name = f"{Path(source_path).resolve().name}.py"
        logger.info("Derived interface %s with %d methods", contract.name, len(contract.methods))
        return {
            "source": source,
            "file_name": file_name,
            "name": contract.name,
            "contract": contract,
        }

    if not contract_name:
        raise ValueError("A contract name is required to locate an existing contract")

    contract = ContractLocator(parser).locate(contract_name, source_path)
    unit = build_fake_unit(contract, fake_name, package_name)
    source = FakeGenerator(unit).render()
    logger.info("Generated %s for %s with %d methods", unit.struct_name, contract.name, len(unit.members))
    return {
        "source": source,
        "file_name": f"{snake_case(unit.struct_name)}.py",
        "name": unit.struct_name,
        "contract": contract,
    }
