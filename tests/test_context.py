from __future__ import annotations

import json
from pathlib import Path

from semsel.core.context import NullContextResolver, TestFileContextResolver, mapping_filename
from semsel.store import MappingStore


def test_mapping_filename() -> None:
    assert mapping_filename("https://shop.example.com/cart/items") == "shop_example_com_cart_items.json"
    assert mapping_filename("https://shop.example.com/cart", "Checkout") == "checkout_shop_example_com_cart.json"


def test_null_resolver_returns_none() -> None:
    assert NullContextResolver().resolve_scope(MappingStore()) is None


def _store_with(tmp_path: Path, *names: str) -> MappingStore:
    for name in names:
        (tmp_path / name).write_text(json.dumps([]), encoding="utf-8")
    store = MappingStore()
    store.load(tmp_path)
    return store


def test_scope_inferred_from_remembered_url(tmp_path: Path) -> None:
    store = _store_with(tmp_path, "checkout_shop_example_com_cart.json", "shop_example_com_home.json")
    resolver = TestFileContextResolver()
    resolver.remember(Path(__file__), "https://shop.example.com/cart")

    assert resolver.resolve_scope(store) == "checkout"


def test_unprefixed_mapping_yields_no_scope(tmp_path: Path) -> None:
    store = _store_with(tmp_path, "shop_example_com_home.json")
    resolver = TestFileContextResolver()
    resolver.remember(Path(__file__), "https://shop.example.com/home")

    assert resolver.resolve_scope(store) is None


def test_scope_inferred_from_goto_in_test_file(tmp_path: Path) -> None:
    store = _store_with(tmp_path, "search_docs_example_org_find.json")
    test_file = tmp_path / "test_search_page.py"
    test_file.write_text(
        "def test_search(page):\n    page.goto('https://docs.example.org/find')\n",
        encoding="utf-8",
    )
    resolver = TestFileContextResolver()

    assert resolver._url_for(test_file.resolve()) == "https://docs.example.org/find"
    resolver.remember(Path(__file__), "https://docs.example.org/find")
    assert resolver.resolve_scope(store) == "search"


def test_no_url_means_no_scope(tmp_path: Path) -> None:
    store = _store_with(tmp_path, "checkout_shop_example_com_cart.json")
    test_file = tmp_path / "test_without_navigation.py"
    test_file.write_text("def test_nothing():\n    pass\n", encoding="utf-8")
    resolver = TestFileContextResolver()

    assert resolver._url_for(test_file.resolve()) is None
