"""
Tests for annotation resolution and module context collection
"""

import ast

import pytest
from mimic.core.errors import UnresolvableType
from mimic.core.models import TypeKind, TypeRef
from mimic.parser import SourceParser, module_name_for
from mimic.translators.signatures import split_returns
from mimic.translators.types import TypeResolver

MODELS = '''
import collections.abc
import datetime as dt
from typing import TYPE_CHECKING, Annotated, Callable, List, Literal, Optional, TypeVar

if TYPE_CHECKING:
    from decimal import Decimal

DEFAULT_LIMIT = 10

T = TypeVar("T", bound="Item")
K = TypeVar("K", str, bytes)


class Item:
    pass
'''


@pytest.fixture
def resolver(write_tree):
    root = write_tree({
        "shop/__init__.py": "",
        "shop/models.py": MODELS,
        "shop/store.py": "from .models import Item\nfrom . import models\n",
    })
    context = SourceParser().parse_file(root / "shop" / "models.py")
    return TypeResolver(context)


def resolve(resolver, text):
    return resolver.resolve(ast.parse(text, mode="eval").body)


def test_module_name_follows_package_chain(write_tree):
    """Test dotted names are derived from __init__.py files"""
    root = write_tree({
        "shop/__init__.py": "",
        "shop/orders/__init__.py": "",
        "shop/orders/api.py": "",
    })
    module, import_root = module_name_for(root / "shop" / "orders" / "api.py")
    assert module == "shop.orders.api"
    assert import_root == root.resolve()

    module, _ = module_name_for(root / "shop" / "orders" / "__init__.py")
    assert module == "shop.orders"


def test_builtin_types(resolver):
    """Test builtins resolve without a module"""
    ref = resolve(resolver, "int")
    assert ref == TypeRef.builtin("int")
    assert ref.render() == "int"
    assert ref.modules() == set()


def test_missing_annotation_is_any(resolver):
    """Test an absent annotation resolves to typing.Any"""
    assert resolver.resolve(None).render() == "typing.Any"


def test_local_declaration_is_qualified(resolver):
    """Test names declared in the module carry the module path"""
    ref = resolve(resolver, "Item")
    assert ref.kind == TypeKind.NAMED
    assert ref.render() == "shop.models.Item"
    assert ref.modules() == {"shop.models"}


def test_string_forward_reference(resolver):
    """Test quoted annotations are parsed and resolved"""
    assert resolve(resolver, "'Item'").render() == "shop.models.Item"


def test_from_import_is_qualified_by_source_module(resolver):
    """Test `from typing import Optional` renders as typing.Optional"""
    ref = resolve(resolver, "Optional[List[int]]")
    assert ref.kind == TypeKind.OPTIONAL
    assert ref.args[0].kind == TypeKind.SEQUENCE
    assert ref.render() == "typing.Optional[typing.List[int]]"


def test_dotted_module_import(resolver):
    """Test `import collections.abc` keeps the full module path"""
    ref = resolve(resolver, "collections.abc.Mapping[str, Item]")
    assert ref.kind == TypeKind.MAPPING
    assert ref.render() == "collections.abc.Mapping[str, shop.models.Item]"
    assert ref.modules() == {"collections.abc", "shop.models"}


def test_module_alias_is_expanded(resolver):
    """Test `import datetime as dt` renders the real module name"""
    assert resolve(resolver, "dt.datetime").render() == "datetime.datetime"


def test_type_checking_imports_are_visible(resolver):
    """Test imports guarded by TYPE_CHECKING resolve"""
    assert resolve(resolver, "Decimal").render() == "decimal.Decimal"


def test_union_and_none(resolver):
    """Test PEP 604 unions are flattened"""
    ref = resolve(resolver, "int | str | None")
    assert ref.kind == TypeKind.UNION
    assert len(ref.args) == 3
    assert ref.render() == "int | str | None"


def test_callable_arguments(resolver):
    """Test Callable parameter lists"""
    ref = resolve(resolver, "Callable[[int, Item], bool]")
    assert ref.kind == TypeKind.CALLABLE
    assert ref.render() == "typing.Callable[[int, shop.models.Item], bool]"


def test_annotated_collapses_to_type(resolver):
    """Test Annotated metadata is dropped"""
    assert resolve(resolver, "Annotated[int, 'positive']").render() == "int"


def test_literal_values(resolver):
    """Test Literal arguments are kept as values"""
    assert resolve(resolver, "Literal['a', 1]").render() == "typing.Literal['a', 1]"


def test_type_var_with_bound(resolver):
    """Test TypeVars become type parameters with resolved bounds"""
    ref = resolve(resolver, "List[T]")
    param = ref.args[0]
    assert param.kind == TypeKind.TYPE_PARAM
    assert param.param.bound.render() == "shop.models.Item"
    assert ref.type_params()[0].name == "T"
    assert ref.modules() == {"typing", "shop.models"}


def test_type_var_constraints(resolver):
    """Test constrained TypeVars keep their constraints"""
    param = resolve(resolver, "K").param
    assert [c.render() for c in param.constraints] == ["str", "bytes"]


def test_substitute_type_params(resolver):
    """Test substituting a type parameter by name"""
    ref = resolve(resolver, "Optional[T]").substitute({"T": TypeRef.builtin("int")})
    assert ref.render() == "typing.Optional[int]"


def test_unknown_name_raises(resolver):
    """Test unresolvable names report the name and location"""
    with pytest.raises(UnresolvableType) as exc_info:
        resolve(resolver, "List[Missing]")
    assert exc_info.value.type_name == "Missing"
    assert "models.py" in exc_info.value.location


def test_relative_imports(write_tree):
    """Test `from .models import Item` resolves to the sibling module"""
    root = write_tree({
        "shop/__init__.py": "",
        "shop/models.py": MODELS,
        "shop/store.py": "from .models import Item\nfrom . import models\n",
    })
    context = SourceParser().parse_file(root / "shop" / "store.py")
    resolver = TypeResolver(context)
    assert resolve(resolver, "Item").render() == "shop.models.Item"
    assert resolve(resolver, "models.Item").render() == "shop.models.Item"


def test_submodule_attribute_is_qualified_by_submodule(write_tree):
    """Test `from . import consts` then `consts.LIMIT` imports the submodule"""
    root = write_tree({
        "shop/__init__.py": "",
        "shop/consts.py": "LIMIT = 10\n\n\nclass Currency:\n    pass\n",
        "shop/store.py": "from . import consts\n",
    })
    context = SourceParser().parse_file(root / "shop" / "store.py")
    resolver = TypeResolver(context)

    currency = resolve(resolver, "consts.Currency")
    assert currency.render() == "shop.consts.Currency"
    assert currency.modules() == {"shop.consts"}

    limit = resolver.expression(ast.parse("consts.LIMIT", mode="eval").body)
    assert limit.text == "shop.consts.LIMIT"
    assert limit.modules == ("shop.consts",)


def test_default_expression_is_qualified(resolver):
    """Test names in default values are qualified with their module"""
    expression = resolver.expression(ast.parse("DEFAULT_LIMIT * 2", mode="eval").body)
    assert expression.text == "shop.models.DEFAULT_LIMIT * 2"
    assert expression.modules == ("shop.models",)


def test_exports_from_dunder_all(write_tree):
    """Test __all__ decides which names are exported"""
    root = write_tree({"lib.py": "__all__ = ['run']\n\ndef run(): pass\n\ndef stop(): pass\n"})
    context = SourceParser().parse_file(root / "lib.py")
    assert context.is_exported("run")
    assert not context.is_exported("stop")


def test_split_returns(resolver):
    """Test None, tuple and single return annotations"""
    assert split_returns(resolve(resolver, "None")) == ()

    pair = split_returns(resolve(resolver, "tuple[int, Item]"))
    assert [r.type.render() for r in pair] == ["int", "shop.models.Item"]

    open_tuple = split_returns(resolve(resolver, "tuple[int, ...]"))
    assert len(open_tuple) == 1
    assert open_tuple[0].type.render() == "tuple[int, ...]"
