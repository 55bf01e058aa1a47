"""
Locate a contract class in Python source and flatten it into a Contract model.
"""

import ast
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .core.config import GENERIC_MARKERS, MARKER_BASES, SKIPPED_DECORATORS
from .core.errors import Ambiguous, CyclicEmbedding, DuplicateMethodName, NotFound, UnresolvableType
from .core.models import Contract, MethodSignature, PackageContext, TypeKind, TypeParam, TypeRef
from .log import get_logger
from .parser import ModuleContext, SourceParser, find_module_file, source_files
from .translators.signatures import translate_signature
from .translators.types import TypeResolver, head_key

logger = get_logger(__name__)

# Re-export chains followed when a base class is imported through a package
MAX_REEXPORT_DEPTH = 10


def _decorator_names(node: ast.AST) -> List[str]:
    names = []
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Call):
            decorator = decorator.func
        if isinstance(decorator, ast.Name):
            names.append(decorator.id)
        elif isinstance(decorator, ast.Attribute):
            names.append(decorator.attr)
    return names


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


class ContractLocator:
    """
    Find a class by name and build its flattened Contract.

    Example usage:
        locator = ContractLocator()
        contract = locator.locate("Store", "app/storage.py")
    """

    def __init__(self, parser: Optional[SourceParser] = None):
        self.parser = parser or SourceParser()

    def locate(self, contract_name: str, source_path: Union[str, Path]) -> Contract:
        """
        Locate a contract in a file or in every module of a directory.

        Raises:
            NotFound: No class with that name
            Ambiguous: More than one class with that name
            CyclicEmbedding: The class embeds itself
            UnresolvableType: A method references an unknown type
            DuplicateMethodName: A name is declared twice
        """
        path = Path(source_path)
        if not path.exists():
            raise NotFound(contract_name, str(path))
        files = source_files(path) if path.is_dir() else [path.resolve()]

        matches: List[Tuple[ModuleContext, ast.ClassDef]] = []
        for file_path in files:
            context = self.parser.parse_file(file_path)
            for node in context.classes.get(contract_name, []):
                matches.append((context, node))

        if not matches:
            raise NotFound(contract_name, str(path))
        if len(matches) > 1:
            raise Ambiguous(contract_name, [ctx.location(node) for ctx, node in matches])

        context, node = matches[0]
        methods, type_params = self._flatten(context, node, [])
        logger.debug(
            "Located contract '%s' in %s with %d methods",
            contract_name, context.path, len(methods),
        )
        return Contract(
            name=contract_name,
            methods=tuple(methods),
            package=PackageContext(module=context.module, path=str(context.path), root=str(context.root)),
            type_params=tuple(type_params),
            location=context.location(node),
        )

    def _flatten(self,
                 context: ModuleContext,
                 node: ast.ClassDef,
                 stack: List[str]) -> Tuple[List[MethodSignature], List[TypeParam]]:
        """
        Methods of a class with every embedded contract merged in.

        Embedded methods come first, in base order; the first base to
        declare a name wins. Methods declared on the class itself replace
        embedded ones of the same name and keep their own position.
        """
        key = f"{context.module}.{node.name}"
        if key in stack:
            raise CyclicEmbedding(stack[stack.index(key):] + [key])
        stack = stack + [key]

        resolver = TypeResolver(context)
        explicit: Optional[List[TypeParam]] = None
        pep695 = getattr(node, "type_params", None) or []
        if pep695:
            explicit = resolver.pep695_params(pep695)
            resolver = resolver.with_params(explicit)

        embedded: Dict[str, MethodSignature] = {}
        inferred: List[TypeParam] = []
        for base in node.bases:
            head_node, arg_nodes = base, []
            if isinstance(base, ast.Subscript):
                head_node = base.value
                arg_nodes = base.slice.elts if isinstance(base.slice, ast.Tuple) else [base.slice]
            try:
                head = resolver.resolve(head_node)
            except UnresolvableType:
                raise NotFound(ast.unparse(head_node), str(context.path), embedded_by=node.name) from None
            args = [resolver.resolve(arg) for arg in arg_nodes]

            if head_key(head) in MARKER_BASES:
                if head_key(head) in GENERIC_MARKERS and args and explicit is None:
                    explicit = [a.param for a in args if a.kind == TypeKind.TYPE_PARAM]
                continue
            for arg in args:
                inferred.extend(arg.type_params())

            base_context, base_node = self._find_class(head, context, node.name)
            base_methods, base_params = self._flatten(base_context, base_node, stack)
            mapping = {param.name: arg for param, arg in zip(base_params, args)}
            for method in base_methods:
                method = method.substitute(mapping)
                existing = embedded.get(method.name)
                if existing is None:
                    embedded[method.name] = method
                elif not existing.same_signature(method):
                    raise DuplicateMethodName(method.name, node.name, [existing.location, method.location])

        own = self._own_methods(context, node, resolver)
        own_names = {method.name for method in own}
        methods = [m for m in embedded.values() if m.name not in own_names] + own

        if explicit is None:
            explicit = []
            for param in inferred:
                if param.name not in {p.name for p in explicit}:
                    explicit.append(param)
        return methods, explicit

    def _own_methods(self,
                     context: ModuleContext,
                     node: ast.ClassDef,
                     resolver: TypeResolver) -> List[MethodSignature]:
        methods: List[MethodSignature] = []
        seen: Dict[str, str] = {}
        for member in node.body:
            if not isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            if _is_dunder(member.name):
                logger.debug("Skipping special method %s.%s", node.name, member.name)
                continue
            skipped = SKIPPED_DECORATORS.intersection(_decorator_names(member))
            if skipped:
                logger.debug("Skipping %s.%s (%s)", node.name, member.name, ", ".join(sorted(skipped)))
                continue
            location = context.location(member)
            if member.name in seen:
                raise DuplicateMethodName(member.name, node.name, [seen[member.name], location])
            seen[member.name] = location
            methods.append(translate_signature(member, resolver))
        return methods

    def _find_class(self,
                    head: TypeRef,
                    context: ModuleContext,
                    embedded_by: str) -> Tuple[ModuleContext, ast.ClassDef]:
        """Source of an embedded contract, following package re-exports"""
        if head.kind == TypeKind.NAMED:
            if head.module == context.module:
                found = self._class_in(context, head.name)
                if found is not None:
                    return context, found
            else:
                parts = head.name.split(".")
                module = ".".join([head.module] + parts[:-1])
                found = self._class_in_module(Path(context.root), module, parts[-1], 0)
                if found is not None:
                    return found
        raise NotFound(head.render(), str(context.root), embedded_by=embedded_by)

    def _class_in_module(self,
                         root: Path,
                         module: str,
                         name: str,
                         depth: int) -> Optional[Tuple[ModuleContext, ast.ClassDef]]:
        if depth > MAX_REEXPORT_DEPTH:
            return None
        file_path = find_module_file(root, module)
        if file_path is None:
            return None
        context = self.parser.parse_file(file_path)
        found = self._class_in(context, name)
        if found is not None:
            return context, found
        target = context.imports.get(name)
        if target is not None and target.attr and "." not in target.attr:
            return self._class_in_module(root, target.module, target.attr, depth + 1)
        return None

    @staticmethod
    def _class_in(context: ModuleContext, name: str) -> Optional[ast.ClassDef]:
        candidates = context.classes.get(name, [])
        if len(candidates) > 1:
            raise Ambiguous(name, [context.location(c) for c in candidates])
        return candidates[0] if candidates else None
