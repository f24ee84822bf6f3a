from __future__ import annotations

from ..types import ElementRecord

TEXT_SELECTOR_TAGS = frozenset({"button", "a", "h1", "h2", "h3", "h4", "h5", "h6", "label"})
SELECTOR_ATTRIBUTES = ("type", "role", "name", "placeholder", "aria-label")
MAX_TEXT_SELECTOR_LENGTH = 30


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def selector_by_test_id(test_id: str) -> str:
    return f'[data-testid="{_quote(test_id)}"]'


def selector_by_text(tag: str, text: str) -> str:
    return f'{tag}:text("{_quote(text)}")'


def selector_by_attributes(tag: str, attributes: dict[str, str]) -> str | None:
    clauses = [
        f'[{name}="{_quote(attributes[name])}"]' for name in SELECTOR_ATTRIBUTES if attributes.get(name)
    ]
    if not clauses:
        return None
    return tag + "".join(clauses)


def as_xpath(selector: str) -> str:
    return f"xpath={selector}"


def synthesize(element: ElementRecord) -> str:
    """Return the most change-resistant selector available for ``element``.

    Preference order: ``data-testid``, ``id``, the first pre-vetted alternative
    selector, short visible text for buttons/links/headings/labels, a CSS
    selector over semantic attributes, and finally the recorded XPath.
    """

    test_id = element.attributes.get("data-testid")
    if test_id:
        return selector_by_test_id(test_id)

    if element.id:
        return f"#{element.id}"

    if element.alternative_selectors:
        first = element.alternative_selectors[0]
        return as_xpath(first) if first.startswith("/") else first

    text = element.inner_text
    if element.tag_name in TEXT_SELECTOR_TAGS and text and len(text) < MAX_TEXT_SELECTOR_LENGTH:
        return selector_by_text(element.tag_name, text)

    by_attributes = selector_by_attributes(element.tag_name, element.attributes)
    if by_attributes:
        return by_attributes

    return as_xpath(element.xpath)
