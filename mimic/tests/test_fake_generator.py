"""
Tests for fake generation, including running the generated code
"""

import asyncio
import threading

import pytest
from mimic.core.errors import EmptyContract
from mimic.generators.fake import build_fake_unit, generate_fake
from mimic.locator import ContractLocator

CHECKER = '''
from typing import Optional

class Checker:
    def check(self, x: int) -> Optional[Exception]: ...
'''


def locate(write_tree, source, name, module="svc"):
    root = write_tree({f"{module}/__init__.py": "", f"{module}/contract.py": source})
    return ContractLocator().locate(name, root / module / "contract.py")


def test_generation_is_deterministic(write_tree):
    """Test the same contract always produces the same source"""
    contract = locate(write_tree, CHECKER, "Checker")
    assert generate_fake(contract) == generate_fake(contract)


def test_generated_layout(write_tree):
    """Test the generated module shape"""
    contract = locate(write_tree, CHECKER, "Checker")
    source = generate_fake(contract, package_name="svcfakes")

    assert source.startswith('"""Code generated by mimic. DO NOT EDIT.')
    assert "FakeChecker is a fake implementation of svc.contract.Checker for package svcfakes." in source
    assert "from __future__ import annotations" in source
    assert "import mimic.runtime" in source
    assert "import dataclasses\nimport typing\n\nimport mimic.runtime\n" in source
    assert "class FakeChecker:" in source
    assert "class CheckCall:" in source
    assert "self._lock = mimic.runtime.RWLock()" in source
    assert "def check(self, x: int) -> typing.Optional[Exception]:" in source
    assert "def check_returns(self, result1: typing.Optional[Exception]) -> None:" in source
    compile(source, "fake_checker.py", "exec")


def test_canned_return(write_tree, import_source):
    """Test a never-stubbed method records the call and returns the canned value"""
    contract = locate(write_tree, CHECKER, "Checker")
    module = import_source("fake_checker", generate_fake(contract))
    fake = module.FakeChecker()

    fake.check_returns(None)
    assert fake.check(5) is None

    assert fake.check_call_count() == 1
    assert fake.check_args_for_call(0).x == 5
    assert fake.check_calls() == [module.FakeChecker.CheckCall(x=5)]


def test_stub_takes_precedence(write_tree, import_source):
    """Test a stub is used for every call and the canned value is ignored"""
    contract = locate(write_tree, CHECKER, "Checker")
    module = import_source("fake_checker", generate_fake(contract))
    fake = module.FakeChecker()
    sentinel = ValueError("boom")

    fake.check_returns(KeyError("unused"))
    fake.check_stub = lambda x: sentinel

    assert fake.check(1) is sentinel
    assert fake.check(2) is sentinel
    assert [call.x for call in fake.check_calls()] == [1, 2]


def test_unset_returns_are_none(write_tree, import_source):
    """Test methods return None values until programmed"""
    contract = locate(write_tree, '''
        from typing import Tuple

        class Index:
            def lookup(self, key: str) -> Tuple[int, bool]: ...
            def size(self) -> int: ...
    ''', "Index")
    module = import_source("fake_index", generate_fake(contract))
    fake = module.FakeIndex()

    assert fake.lookup("a") == (None, None)
    assert fake.size() is None

    fake.lookup_returns(3, True)
    assert fake.lookup("a") == (3, True)


def test_calls_accessor_returns_a_copy(write_tree, import_source):
    """Test mutating the returned log does not touch the fake"""
    contract = locate(write_tree, CHECKER, "Checker")
    module = import_source("fake_checker", generate_fake(contract))
    fake = module.FakeChecker()

    fake.check(1)
    calls = fake.check_calls()
    calls.clear()
    assert fake.check_call_count() == 1


def test_variadic_fields_are_copied_on_read(write_tree, import_source):
    """Test *args and **kwargs fields handed out by accessors are copies"""
    contract = locate(write_tree, '''
        class Joiner:
            def join(self, prefix: str, *rest: int, **extra: str) -> str: ...
    ''', "Joiner")
    module = import_source("fake_joiner", generate_fake(contract))
    fake = module.FakeJoiner()

    fake.join("a", 1, 2, 3, sep="-")
    fake.join_calls()[0].rest.append(99)
    fake.join_calls()[0].extra["sep"] = "+"
    fake.join_args_for_call(0).rest.clear()

    call = fake.join_args_for_call(0)
    assert call.rest == [1, 2, 3]
    assert call.extra == {"sep": "-"}


def test_variadic_arguments_are_recorded_as_list(write_tree, import_source):
    """Test *args are recorded as one list field"""
    contract = locate(write_tree, '''
        class Joiner:
            def join(self, prefix: str, *rest: int) -> str: ...
    ''', "Joiner")
    source = generate_fake(contract)
    assert "rest: typing.List[int]" in source

    module = import_source("fake_joiner", source)
    fake = module.FakeJoiner()
    fake.join_stub = lambda prefix, *rest: prefix + "".join(str(r) for r in rest)

    assert fake.join("a", 1, 2, 3) == "a123"
    call = fake.join_args_for_call(0)
    assert call.prefix == "a"
    assert call.rest == [1, 2, 3]


def test_keyword_arguments(write_tree, import_source):
    """Test keyword-only and **kwargs parameters are recorded and forwarded"""
    contract = locate(write_tree, '''
        class Logger:
            def log(self, msg: str, *, level: int = 0, **extra: str) -> None: ...
    ''', "Logger")
    module = import_source("fake_logger", generate_fake(contract))
    fake = module.FakeLogger()
    seen = []
    fake.log_stub = lambda msg, level=0, **extra: seen.append((msg, level, extra))

    fake.log("hi", level=2, user="bob")
    fake.log("bye")

    assert seen == [("hi", 2, {"user": "bob"}), ("bye", 0, {})]
    first, second = fake.log_calls()
    assert first.extra == {"user": "bob"}
    assert second.level == 0


def test_default_values_are_qualified(write_tree, import_source):
    """Test defaults referring to module names still evaluate in the fake"""
    contract = locate(write_tree, '''
        DEFAULT_LIMIT = 10

        class Pager:
            def page(self, limit: int = DEFAULT_LIMIT) -> int: ...
    ''', "Pager")
    source = generate_fake(contract)
    assert "limit: int = svc.contract.DEFAULT_LIMIT" in source
    assert "import svc.contract" in source

    module = import_source("fake_pager", source)
    fake = module.FakePager()
    fake.page()
    assert fake.page_args_for_call(0).limit == 10


def test_async_methods(write_tree, import_source):
    """Test async methods await their stub"""
    contract = locate(write_tree, '''
        class Fetcher:
            async def fetch(self, key: str) -> bytes: ...
    ''', "Fetcher")
    module = import_source("fake_fetcher", generate_fake(contract))
    fake = module.FakeFetcher()

    fake.fetch_returns(b"canned")
    assert asyncio.run(fake.fetch("a")) == b"canned"

    async def stub(key):
        return key.encode()

    fake.fetch_stub = stub
    assert asyncio.run(fake.fetch("b")) == b"b"
    assert [c.key for c in fake.fetch_calls()] == ["a", "b"]


def test_async_callers_share_the_event_loop(write_tree, import_source):
    """Test concurrent tasks calling an async fake do not block the loop"""
    contract = locate(write_tree, '''
        class Fetcher:
            async def fetch(self, key: str) -> bytes: ...
    ''', "Fetcher")
    module = import_source("fake_fetcher", generate_fake(contract))
    fake = module.FakeFetcher()

    async def stub(key):
        await asyncio.sleep(0.01)
        return key.encode()

    fake.fetch_stub = stub
    results = []

    async def both():
        results.extend(await asyncio.gather(fake.fetch("a"), fake.fetch("b")))

    runner = threading.Thread(target=asyncio.run, args=(both(),))
    runner.start()
    runner.join(timeout=5)

    assert not runner.is_alive()
    assert results == [b"a", b"b"]
    assert sorted(c.key for c in fake.fetch_calls()) == ["a", "b"]


def test_names_from_imported_submodules(write_tree, import_source):
    """Test `from . import consts` references import the submodule itself"""
    root = write_tree({
        "pkg/__init__.py": "",
        "pkg/consts.py": "LIMIT = 25\n\n\nclass Page:\n    pass\n",
        "pkg/api.py": '''
            from . import consts

            class Pager:
                def page(self, limit: int = consts.LIMIT) -> consts.Page: ...
        ''',
    })
    contract = ContractLocator().locate("Pager", root / "pkg" / "api.py")
    source = generate_fake(contract)
    assert "import pkg.consts" in source
    assert "limit: int = pkg.consts.LIMIT" in source

    module = import_source("fake_pager", source)
    fake = module.FakePager()
    fake.page()
    assert fake.page_args_for_call(0).limit == 25


def test_cross_module_types(write_tree, import_source):
    """Test referenced types are imported by their defining module"""
    root = write_tree({
        "shop/__init__.py": "",
        "shop/models.py": "class Item:\n    pass\n",
        "shop/store.py": '''
            from typing import List
            from shop.models import Item

            class Store:
                def items(self) -> List[Item]: ...
                def add(self, item: Item) -> None: ...
        ''',
    })
    contract = ContractLocator().locate("Store", root / "shop" / "store.py")
    source = generate_fake(contract)
    assert "import shop.models" in source
    assert "def items(self) -> typing.List[shop.models.Item]:" in source

    module = import_source("fake_store", source)
    from shop.models import Item

    fake = module.FakeStore()
    item = Item()
    fake.add(item)
    fake.items_returns([item])
    assert fake.items() == [item]
    assert fake.add_args_for_call(0).item is item


def test_generic_contract(write_tree, import_source):
    """Test type parameters are re-declared and applied to the fake"""
    contract = locate(write_tree, '''
        from typing import Optional, Protocol, TypeVar

        T = TypeVar("T")

        class Repo(Protocol[T]):
            def get(self, key: str) -> Optional[T]: ...
            def put(self, key: str, value: T) -> None: ...
    ''', "Repo")
    source = generate_fake(contract)
    assert 'T = typing.TypeVar("T")' in source
    assert "class FakeRepo(typing.Generic[T]):" in source
    assert "class PutCall(typing.Generic[T]):" in source
    assert "class GetCall:" in source

    module = import_source("fake_repo", source)
    fake = module.FakeRepo[int]()
    fake.put("a", 1)
    fake.get_returns(1)
    assert fake.get("a") == 1
    assert fake.put_args_for_call(0).value == 1


def test_generated_names_avoid_methods(write_tree, import_source):
    """Test a method named like a generated member gets a suffixed stub"""
    contract = locate(write_tree, '''
        class Cache:
            def get(self) -> int: ...
            def get_stub(self) -> int: ...
    ''', "Cache")
    unit = build_fake_unit(contract)
    assert unit.members[0].stub == "get_stub_2"
    assert unit.members[1].stub == "get_stub_stub"

    module = import_source("fake_cache", generate_fake(contract))
    fake = module.FakeCache()
    fake.get_stub_2 = lambda: 7
    assert fake.get() == 7
    assert fake.get_stub() is None
    assert fake.get_stub_call_count() == 1


def test_method_named_like_the_lock(write_tree, import_source):
    """Test a contract method called _lock does not clash with the fake's lock"""
    contract = locate(write_tree, '''
        class Guarded:
            def _lock(self) -> None: ...
    ''', "Guarded")
    unit = build_fake_unit(contract)
    assert unit.lock == "_lock_2"

    source = generate_fake(contract)
    assert "self._lock_2 = mimic.runtime.RWLock()" in source

    module = import_source("fake_guarded", source)
    fake = module.FakeGuarded()
    assert fake._lock() is None
    assert fake._lock_call_count() == 1


def test_named_fake(write_tree):
    """Test an explicit fake name"""
    contract = locate(write_tree, CHECKER, "Checker")
    source = generate_fake(contract, struct_name="CoolChecker")
    assert "class CoolChecker:" in source


def test_empty_contract(write_tree):
    """Test a contract without methods raises EmptyContract"""
    contract = locate(write_tree, "class Nothing:\n    pass\n", "Nothing")
    with pytest.raises(EmptyContract):
        generate_fake(contract)


def test_concurrent_calls_are_all_recorded(write_tree, import_source):
    """Test calls from many threads are all logged, each thread's in order"""
    contract = locate(write_tree, CHECKER, "Checker")
    module = import_source("fake_checker", generate_fake(contract))
    fake = module.FakeChecker()

    def worker(offset):
        for i in range(100):
            fake.check(offset + i)
            fake.check_call_count()

    threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert fake.check_call_count() == 800
    assert len({call.x for call in fake.check_calls()}) == 800

    by_thread = {}
    for call in fake.check_calls():
        by_thread.setdefault(call.x // 1000, []).append(call.x)
    for n, xs in by_thread.items():
        assert xs == list(range(n * 1000, n * 1000 + 100))
