"""
Tests for deriving a contract from free functions
"""

import pytest
from mimic.core.errors import DuplicateMethodName, NoExportedFunctions, NotFound
from mimic.extractor import FunctionSetExtractor, contract_name_for


def test_contract_name_for_directory(tmp_path):
    """Test directory names become CamelCase contract names"""
    assert contract_name_for(tmp_path / "my_pkg") == "MyPkg"
    assert contract_name_for(tmp_path / "http-tools") == "HttpTools"
    assert contract_name_for(tmp_path / "store") == "Store"


def test_extracts_exported_functions_in_file_order(write_tree):
    """Test functions are collected by file name then position"""
    root = write_tree({
        "billing/__init__.py": "",
        "billing/b_refunds.py": '''
            def refund(invoice_id: int) -> bool:
                return True
        ''',
        "billing/a_invoices.py": '''
            from typing import List

            def create(amount: int, *tags: str) -> int:
                return 1

            def _internal() -> None:
                pass

            def list_all() -> List[int]:
                return []
        ''',
    })
    contract = FunctionSetExtractor().extract(root / "billing")

    assert contract.name == "Billing"
    assert contract.package.module == "billing"
    assert [m.name for m in contract.methods] == ["create", "list_all", "refund"]
    create = contract.methods[0]
    assert [p.name for p in create.parameters] == ["amount", "tags"]
    assert create.parameters[1].variadic


def test_respects_dunder_all(write_tree):
    """Test __all__ limits the exported functions"""
    root = write_tree({"tools/api.py": '''
        __all__ = ["run"]

        def run() -> None:
            pass

        def helper() -> None:
            pass
    '''})
    contract = FunctionSetExtractor().extract(root / "tools", "Runner")
    assert contract.name == "Runner"
    assert [m.name for m in contract.methods] == ["run"]


def test_skips_test_modules(write_tree):
    """Test test files are not part of the derived contract"""
    root = write_tree({
        "tools/api.py": "def run() -> None:\n    pass\n",
        "tools/test_api.py": "def test_run() -> None:\n    pass\n",
        "tools/conftest.py": "def fixture() -> None:\n    pass\n",
    })
    contract = FunctionSetExtractor().extract(root / "tools")
    assert [m.name for m in contract.methods] == ["run"]


def test_duplicate_across_files(write_tree):
    """Test the same function name in two files raises DuplicateMethodName"""
    root = write_tree({
        "tools/a.py": "def run() -> None:\n    pass\n",
        "tools/b.py": "def run() -> None:\n    pass\n",
    })
    with pytest.raises(DuplicateMethodName) as exc_info:
        FunctionSetExtractor().extract(root / "tools")
    assert len(exc_info.value.locations) == 2


def test_no_exported_functions(write_tree):
    """Test a directory without exported functions"""
    root = write_tree({"tools/a.py": "def _hidden() -> None:\n    pass\n\nclass Thing:\n    pass\n"})
    with pytest.raises(NoExportedFunctions):
        FunctionSetExtractor().extract(root / "tools")


def test_not_a_directory(write_tree):
    """Test a file path raises NotFound"""
    root = write_tree({"tools.py": "def run() -> None:\n    pass\n"})
    with pytest.raises(NotFound):
        FunctionSetExtractor().extract(root / "tools.py")
