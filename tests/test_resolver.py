from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from semsel.config import Settings
from semsel.core.context import NullContextResolver
from semsel.core.resolver import SemanticSelectors
from semsel.errors import AmbiguousAcrossFeatures, NotFound
from semsel.store import MappingStore


def raw_element(key: str, tag: str = "button", **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"tagName": tag, "xpath": f"//{tag}[@data-key='{key}']", "semanticKey": key}
    payload.update(fields)
    return payload


def write_mapping(directory: Path, name: str, elements: list[dict[str, Any]], feature: str | None = None) -> None:
    payload: Any = elements
    if feature:
        payload = {
            "metadata": {
                "url": f"https://example.com/{feature}",
                "timestamp": "2024-05-01T10:00:00Z",
                "featureName": feature,
                "elementCount": len(elements),
            },
            "elements": elements,
        }
    (directory / name).write_text(json.dumps(payload), encoding="utf-8")


class CountingStore(MappingStore):
    def __init__(self) -> None:
        super().__init__()
        self.reads = 0

    def _read_file(self, path: Path) -> bytes:
        self.reads += 1
        return super()._read_file(path)


@pytest.fixture()
def save_buttons(tmp_path: Path) -> Path:
    write_mapping(tmp_path, "profile_example_com_profile.json", [raw_element("profile_save_button")], "profile")
    write_mapping(tmp_path, "settings_example_com_settings.json", [raw_element("settings_save_button")], "settings")
    return tmp_path


def test_scenario_free_text_single_element(tmp_path: Path) -> None:
    write_mapping(
        tmp_path,
        "login.json",
        [raw_element("login_text_input_username", tag="input", attributes={"data-testid": "login-username"})],
    )

    selectors = SemanticSelectors(mapping_dir=tmp_path)

    assert selectors.resolve_selector("username") == '[data-testid="login-username"]'


def test_unique_keys_resolve_deterministically(tmp_path: Path) -> None:
    write_mapping(
        tmp_path,
        "login.json",
        [
            raw_element("login_input_email", tag="input", id="email"),
            raw_element("login_button_submit", innerText="Sign in"),
            raw_element("login_link_forgot", tag="a", alternativeSelectors=["//a[@href='/forgot']"]),
            raw_element("login_input_password", tag="input", attributes={"type": "password", "name": "pw"}),
        ],
    )
    selectors = SemanticSelectors(mapping_dir=tmp_path)

    assert selectors.resolve_selector("login_input_email") == "#email"
    assert selectors.resolve_selector("login_button_submit") == 'button:text("Sign in")'
    assert selectors.resolve_selector("login_link_forgot") == "xpath=//a[@href='/forgot']"
    assert selectors.resolve_selector("login_input_password") == 'input[type="password"][name="pw"]'


def test_scenario_cross_feature_ambiguity(save_buttons: Path) -> None:
    selectors = SemanticSelectors(mapping_dir=save_buttons)

    with pytest.raises(AmbiguousAcrossFeatures) as excinfo:
        selectors.resolve_selector("save button")

    assert excinfo.value.features == ["profile", "settings"]


def test_scenario_scope_disambiguates(save_buttons: Path) -> None:
    selectors = SemanticSelectors(mapping_dir=save_buttons)

    resolution = selectors.resolve("save button", scope="settings")

    assert resolution.candidate.key == "settings_save_button"
    assert resolution.selector == "xpath=//button[@data-key='settings_save_button']"
    assert resolution.assessment.ambiguous is True


def test_inferred_scope_is_used(save_buttons: Path) -> None:
    class FixedScope:
        def resolve_scope(self, store: MappingStore) -> str | None:
            return "profile"

    selectors = SemanticSelectors(mapping_dir=save_buttons, context=FixedScope())

    assert selectors.resolve("save button").candidate.key == "profile_save_button"


def test_not_found_echoes_query(tmp_path: Path) -> None:
    write_mapping(tmp_path, "login.json", [raw_element("login_button_submit")])
    selectors = SemanticSelectors(mapping_dir=tmp_path)

    with pytest.raises(NotFound) as excinfo:
        selectors.resolve_selector("shopping cart")

    assert "shopping cart" in str(excinfo.value)


def test_explicit_mapping_dir_overrides_default(tmp_path: Path) -> None:
    other = tmp_path / "other"
    other.mkdir()
    write_mapping(other, "cart.json", [raw_element("cart_button_checkout", id="checkout")])
    selectors = SemanticSelectors(mapping_dir=tmp_path / "missing")

    assert selectors.resolve_selector("cart_button_checkout", mapping_dir=other) == "#checkout"


def test_clear_cache_rereads_mapping_files(tmp_path: Path) -> None:
    write_mapping(tmp_path, "login.json", [raw_element("login_button_submit", id="submit")])
    store = CountingStore()
    selectors = SemanticSelectors(store=store, mapping_dir=tmp_path)

    selectors.resolve_selector("login_button_submit")
    selectors.resolve_selector("login_button_submit")
    assert store.reads == 1

    selectors.clear_cache()
    selectors.resolve_selector("login_button_submit")
    assert store.reads == 2


def test_list_keys(tmp_path: Path) -> None:
    write_mapping(
        tmp_path,
        "login.json",
        [
            raw_element("login_button_submit", innerText="Sign in"),
            {"tagName": "div", "xpath": "/html/body/div"},
        ],
        feature="login",
    )
    selectors = SemanticSelectors(mapping_dir=tmp_path)

    keys = selectors.list_keys()

    assert [(item.key, item.description) for item in keys] == [
        ("login_button_submit", 'button with text "Sign in" (feature: login)')
    ]


def test_feature_keys(save_buttons: Path) -> None:
    selectors = SemanticSelectors(mapping_dir=save_buttons)

    assert [item.key for item in selectors.feature_keys("settings")] == ["settings_save_button"]


def test_suggest_keys(tmp_path: Path) -> None:
    write_mapping(
        tmp_path,
        "login.json",
        [
            raw_element("login_button_submit", innerText="Submit form"),
            raw_element("login_input_username", tag="input"),
            raw_element("footer_link_about", tag="a"),
        ],
    )
    selectors = SemanticSelectors(mapping_dir=tmp_path)

    suggestions = selectors.suggest_keys("submit the login form")

    assert [(item.key, item.score) for item in suggestions] == [
        ("login_button_submit", 16),
        ("login_input_username", 5),
    ]


def test_from_settings(tmp_path: Path) -> None:
    settings = Settings(mapping_dir=tmp_path, ambiguity_ratio=0.9)

    selectors = SemanticSelectors.from_settings(settings)

    assert selectors.mapping_dir == tmp_path
    assert selectors.detector.ratio == 0.9
    assert isinstance(selectors.context, NullContextResolver)


def test_locate_hands_selector_to_driver(tmp_path: Path) -> None:
    write_mapping(tmp_path, "login.json", [raw_element("login_button_submit", id="submit")])

    class RecordingDriver:
        def __init__(self) -> None:
            self.selectors: list[str] = []

        def extract_elements(self) -> list[dict[str, Any]]:
            return []

        def resolve_locator(self, selector: str) -> str:
            self.selectors.append(selector)
            return f"handle:{selector}"

    driver = RecordingDriver()
    selectors = SemanticSelectors(mapping_dir=tmp_path)

    assert selectors.locate(driver, "login_button_submit") == "handle:#submit"
    assert driver.selectors == ["#submit"]


def test_module_level_helpers_use_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from semsel.core import resolver

    write_mapping(tmp_path, "login.json", [raw_element("login_button_submit", id="submit")])
    monkeypatch.setenv("SEMSEL_MAPPING_DIR", str(tmp_path))
    monkeypatch.setattr(resolver, "_default", None)

    assert resolver.resolve_selector("login_button_submit") == "#submit"
    assert [item.key for item in resolver.list_keys()] == ["login_button_submit"]
    resolver.clear_cache()
    assert resolver.default_selectors().store.files == []


def test_failing_scope_inference_does_not_block_matching(tmp_path: Path) -> None:
    write_mapping(
        tmp_path,
        "login.json",
        [raw_element("login_button_submit", attributes={"data-testid": "go"})],
    )

    class BrokenScope:
        def resolve_scope(self, store: MappingStore) -> str | None:
            raise RuntimeError("stack unavailable")

    selectors = SemanticSelectors(mapping_dir=tmp_path, context=BrokenScope())

    resolution = selectors.resolve("login_button_submit")

    assert resolution.selector == '[data-testid="go"]'
    assert resolution.scope is None
