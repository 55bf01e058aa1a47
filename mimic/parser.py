"""
Parser that reads Python source units into module contexts.

A module context is everything the type resolver needs to qualify a name
found in that module: its dotted module path, its imports, and the names
it declares at top level.
"""

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Union

from .log import get_logger

logger = get_logger(__name__)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass(frozen=True)
class ImportedName:
    """Target of a local import alias: a module, or an attribute path inside one"""
    module: str
    attr: str = ""


@dataclass
class ModuleContext:
    """Parsed module plus the name tables derived from it"""
    path: Path
    module: str
    root: Path
    tree: ast.Module
    imports: Dict[str, ImportedName] = field(default_factory=dict)
    imported_modules: Set[str] = field(default_factory=set)
    declared: Set[str] = field(default_factory=set)
    type_vars: Dict[str, ast.Call] = field(default_factory=dict)
    classes: Dict[str, List[ast.ClassDef]] = field(default_factory=dict)
    functions: List[FunctionNode] = field(default_factory=list)
    exports: Optional[List[str]] = None

    @property
    def package(self) -> str:
        """Package used as the anchor for relative imports"""
        if self.path.name == "__init__.py":
            return self.module
        return self.module.rpartition(".")[0]

    def location(self, node: ast.AST) -> str:
        return f"{self.path}:{getattr(node, 'lineno', 0)}"

    def is_exported(self, name: str) -> bool:
        if self.exports is not None:
            return name in self.exports
        return not name.startswith("_")


def module_name_for(path: Path):
    """
    Dotted module name of a file and the directory it is importable from.

    Walks up while the parent directory is a package (has __init__.py).
    """
    path = path.resolve()
    parts = [] if path.name == "__init__.py" else [path.stem]
    directory = path.parent
    while (directory / "__init__.py").exists():
        parts.insert(0, directory.name)
        if directory.parent == directory:
            break
        directory = directory.parent
    return ".".join(parts), directory


def find_module_file(root: Path, module: str) -> Optional[Path]:
    """File implementing a dotted module under an import root, if any"""
    base = root.joinpath(*module.split("."))
    for candidate in (base.with_suffix(".py"), base / "__init__.py"):
        if candidate.is_file():
            return candidate.resolve()
    return None


def source_files(directory: Path) -> List[Path]:
    """Python files of one directory (non-recursive), sorted by name"""
    return sorted(p.resolve() for p in directory.iterdir() if p.is_file() and p.suffix == ".py")


def _is_type_checking(test: ast.expr) -> bool:
    if isinstance(test, ast.Name):
        return test.id == "TYPE_CHECKING"
    if isinstance(test, ast.Attribute):
        return test.attr == "TYPE_CHECKING"
    return False


def _top_level(body: List[ast.stmt]) -> Iterator[ast.stmt]:
    """Top-level statements, descending into TYPE_CHECKING blocks and try bodies"""
    for node in body:
        if isinstance(node, ast.If) and _is_type_checking(node.test):
            yield from _top_level(node.body)
        elif isinstance(node, ast.Try):
            yield from _top_level(node.body)
        else:
            yield node


def _is_typevar_call(value: ast.expr) -> bool:
    if not isinstance(value, ast.Call):
        return False
    func = value.func
    if isinstance(func, ast.Name):
        return func.id == "TypeVar"
    return isinstance(func, ast.Attribute) and func.attr == "TypeVar"


def _literal_names(value: ast.expr) -> Optional[List[str]]:
    if not isinstance(value, (ast.List, ast.Tuple)):
        return None
    names = []
    for elt in value.elts:
        if isinstance(elt, ast.Constant) and isinstance(elt.value, str):
            names.append(elt.value)
    return names


class SourceParser:
    """Parse Python files into ModuleContexts, caching by resolved path"""

    def __init__(self):
        self._cache: Dict[Path, ModuleContext] = {}

    def parse_file(self, file_path: Union[str, Path]) -> ModuleContext:
        """
        Parse a Python file and collect its imports and declarations.

        Args:
            file_path: Path to a Python file

        Returns:
            ModuleContext for the file

        Raises:
            SyntaxError: If the file is not valid Python
        """
        path = Path(file_path).resolve()
        if path in self._cache:
            return self._cache[path]

        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(path))
        module, root = module_name_for(path)
        context = ModuleContext(path=path, module=module, root=root, tree=tree)

        for node in _top_level(tree.body):
            self._collect(context, node)

        logger.debug(
            "Parsed %s as module '%s' (%d imports, %d declarations)",
            path, module, len(context.imports), len(context.declared),
        )
        self._cache[path] = context
        return context

    def _collect(self, context: ModuleContext, node: ast.stmt) -> None:
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    context.imports[alias.asname] = ImportedName(alias.name)
                else:
                    root_name = alias.name.split(".")[0]
                    context.imports[root_name] = ImportedName(root_name)
                    parts = alias.name.split(".")
                    for i in range(1, len(parts) + 1):
                        context.imported_modules.add(".".join(parts[:i]))

        elif isinstance(node, ast.ImportFrom):
            if node.module == "__future__":
                return
            module = self._absolute_module(context, node)
            for alias in node.names:
                if alias.name == "*":
                    logger.debug("Ignoring star import from '%s' in %s", module, context.path)
                    continue
                context.imports[alias.asname or alias.name] = ImportedName(module, alias.name)

        elif isinstance(node, ast.ClassDef):
            context.declared.add(node.name)
            context.classes.setdefault(node.name, []).append(node)

        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            context.declared.add(node.name)
            context.functions.append(node)

        elif isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    context.declared.add(target.id)
                    if target.id == "__all__":
                        context.exports = _literal_names(node.value)
                    elif _is_typevar_call(node.value):
                        context.type_vars[target.id] = node.value

        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            context.declared.add(node.target.id)

        elif type(node).__name__ == "TypeAlias":
            context.declared.add(node.name.id)

    @staticmethod
    def _absolute_module(context: ModuleContext, node: ast.ImportFrom) -> str:
        if not node.level:
            return node.module or ""
        anchor = context.package.split(".") if context.package else []
        if node.level > 1:
            anchor = anchor[:len(anchor) - (node.level - 1)]
        if node.module:
            anchor.append(node.module)
        return ".".join(anchor)
