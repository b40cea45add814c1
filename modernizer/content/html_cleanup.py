"""HTML normalization applied before content blocks are scanned."""

from __future__ import annotations

from bs4 import BeautifulSoup, NavigableString, Tag

# Block elements the modern text editor cannot represent. Their children are
# kept inside a plain div.
UNTRANSFORMABLE_BLOCK_TAGS = frozenset(
    {
        "article",
        "address",
        "aside",
        "canvas",
        "dd",
        "dl",
        "dt",
        "fieldset",
        "figcaption",
        "figure",
        "footer",
        "form",
        "header",
        "main",
        "nav",
        "noscript",
        "output",
        "pre",
        "section",
        "tfoot",
        "video",
    }
)


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse an HTML fragment without adding html/body wrappers."""

    return BeautifulSoup(html or "", "html.parser")


def replace_untransformable_blocks(soup: BeautifulSoup) -> int:
    """Swap untransformable block tags for divs, keeping their children.

    Returns the number of replaced elements.
    """

    replaced = 0
    for element in list(soup.find_all(True)):
        if element.name not in UNTRANSFORMABLE_BLOCK_TAGS or element.parent is None:
            continue
        div = soup.new_tag("div")
        for child in list(element.children):
            div.append(child.extract())
        element.replace_with(div)
        replaced += 1
    return replaced


def has_text_content(html: str) -> bool:
    """True when the fragment renders any text or embeds media."""

    soup = parse_fragment(html)
    if soup.get_text(strip=True):
        return True
    return soup.find(["img", "iframe", "video", "embed", "object"]) is not None


def is_blank_text(node: object) -> bool:
    return isinstance(node, NavigableString) and not str(node).strip()


def is_element(node: object) -> bool:
    return isinstance(node, Tag)
