"""
Derive a contract from the exported free functions of a directory.
"""

import fnmatch
from pathlib import Path
from typing import Dict, List, Optional, Union

from .core.config import TEST_FILE_PATTERNS
from .core.errors import DuplicateMethodName, NoExportedFunctions, NotFound
from .core.models import Contract, MethodSignature, PackageContext
from .log import get_logger
from .parser import SourceParser, module_name_for, source_files
from .translators.signatures import translate_signature
from .translators.types import TypeResolver

logger = get_logger(__name__)


def contract_name_for(directory: Union[str, Path]) -> str:
    """CamelCase name for the contract derived from a directory: my_pkg -> MyPkg"""
    base = Path(directory).resolve().name
    parts = [part for part in base.replace("-", "_").split("_") if part]
    return "".join(part[:1].upper() + part[1:] for part in parts)


def _is_test_file(path: Path) -> bool:
    return any(fnmatch.fnmatch(path.name, pattern) for pattern in TEST_FILE_PATTERNS)


class FunctionSetExtractor:
    """Collect exported top-level functions into a synthetic Contract"""

    def __init__(self, parser: Optional[SourceParser] = None):
        self.parser = parser or SourceParser()

    def extract(self, dir_path: Union[str, Path], contract_name: str = "") -> Contract:
        """
        Scan a directory for exported functions.

        Args:
            dir_path: Directory to scan (non-recursive)
            contract_name: Name of the derived contract; defaults to the
                directory name in CamelCase

        Returns:
            Contract whose methods are the functions, ordered by file path
            then position

        Raises:
            NotFound: dir_path is not a directory
            NoExportedFunctions: Nothing exported
            DuplicateMethodName: Two files export the same name
        """
        directory = Path(dir_path)
        if not directory.is_dir():
            raise NotFound(contract_name or directory.name, str(directory))
        name = contract_name or contract_name_for(directory)

        methods: List[MethodSignature] = []
        seen: Dict[str, str] = {}
        for file_path in source_files(directory):
            if _is_test_file(file_path):
                logger.debug("Skipping test module %s", file_path)
                continue
            context = self.parser.parse_file(file_path)
            resolver = TypeResolver(context)
            for node in context.functions:
                if not context.is_exported(node.name):
                    continue
                location = context.location(node)
                if node.name in seen:
                    raise DuplicateMethodName(node.name, name, [seen[node.name], location])
                seen[node.name] = location
                methods.append(translate_signature(node, resolver, is_method=False))

        if not methods:
            raise NoExportedFunctions(str(directory))

        module, root = module_name_for(directory / "__init__.py")
        logger.debug("Extracted %d functions from %s", len(methods), directory)
        return Contract(
            name=name,
            methods=tuple(methods),
            package=PackageContext(module=module, path=str(directory.resolve()), root=str(root)),
            location=str(directory.resolve()),
        )
