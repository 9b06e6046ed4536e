"""HTML processing utility functions."""

import re
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

# Marker class carried by output that has already been converted
CONVERTED_PRICE_CLASS = "converted-price"

# Visually hidden copies of visible prices (screen-reader twins)
HIDDEN_TWIN_CLASSES = ("a-offscreen", "sr-only", "visually-hidden", "screen-reader-text")

SKIP_TAGS = ("script", "style", "noscript", "template")

PRICE_ATTRIBUTES = (
    "data-price",
    "data-price-amount",
    "data-price-value",
    "data-amount",
    "data-cost",
    "data-value",
    "itemprop",
    "aria-label",
)

PRICE_CLASSES = (
    "price",
    "a-price",
    "a-offscreen",
    "a-price-whole",
    "a-price-fraction",
    "a-price-symbol",
    "sx-price",
    "woocommerce-price-amount",
    "amount",
    "cost",
    "currency",
    "money",
)

PRICE_CONTAINERS = (
    "price",
    "product-price",
    "price-container",
    "price-box",
    "price-wrapper",
    "pricing",
    "cost",
    "amount",
)

PRICE_ITEMPROPS = ("price", "lowprice", "highprice")


def clean_text(text: Optional[str]) -> str:
    """
    Clean and normalize extracted text.

    Args:
        text: Raw text to clean

    Returns:
        Cleaned text with normalized whitespace
    """
    if not text:
        return ""

    text = re.sub(r'\s+', ' ', str(text))
    return text.strip()


def is_element(node) -> bool:
    """True for a markup element (not a document root or a text node)."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text_node(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def looks_like_markup(text: Optional[str]) -> bool:
    """True if a string looks like an HTML snippet rather than plain text."""
    if not text:
        return False
    text = text.strip()
    return text.startswith("<") and text.endswith(">") and re.match(r'<[A-Za-z]', text) is not None


def parse_fragment(html: str) -> Optional[Tag]:
    """
    Parse an HTML snippet and return its first element.

    Args:
        html: HTML snippet such as '<span class="price">$8.48</span>'

    Returns:
        First element of the snippet, or None if it has none
    """
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    return soup.find(True)


def node_text(node) -> str:
    """Whitespace-normalized text content of a node."""
    if node is None:
        return ""
    if is_text_node(node):
        return clean_text(str(node))
    if isinstance(node, Tag):
        return clean_text(node.get_text())
    return ""


def class_list(node) -> List[str]:
    if not is_element(node):
        return []
    classes = node.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c for c in classes if c]


def class_string(node) -> str:
    """Lower-cased class attribute of a node ('' when absent)."""
    return " ".join(class_list(node)).lower()


def has_class(node, *names: str) -> bool:
    classes = {c.lower() for c in class_list(node)}
    return any(name.lower() in classes for name in names)


def is_hidden_twin(node) -> bool:
    """True for visually hidden elements that duplicate visible price text."""
    return has_class(node, *HIDDEN_TWIN_CLASSES)


def iter_ancestors(node, max_depth: int = 5) -> Iterator[Tag]:
    """
    Yield the element ancestors of a node, nearest first.

    Stops at the document root, after max_depth levels, or when a node is
    seen twice.
    """
    visited = set()
    current = getattr(node, "parent", None)
    depth = 0
    while is_element(current) and depth < max_depth and id(current) not in visited:
        visited.add(id(current))
        yield current
        current = current.parent
        depth += 1


def iter_descendants(node, max_depth: int = 6, limit: int = 200) -> Iterator[Tag]:
    """Yield descendant elements in document order, bounded by depth and count."""
    if not isinstance(node, Tag):
        return

    visited = set()
    stack = [(child, 1) for child in reversed(list(node.children))]
    count = 0
    while stack and count < limit:
        current, depth = stack.pop()
        if not is_element(current) or id(current) in visited:
            continue
        visited.add(id(current))
        count += 1
        yield current
        if depth < max_depth:
            stack.extend((child, depth + 1) for child in reversed(list(current.children)))


def iter_text_fragments(
    node,
    max_depth: int = 6,
    limit: int = 12,
    skip_hidden: bool = True,
) -> List[str]:
    """
    Collect non-empty leaf text fragments of a subtree in document order.

    Script/style content is skipped, and so are visually hidden twins of
    visible text when skip_hidden is set.
    """
    if is_text_node(node):
        text = clean_text(str(node))
        return [text] if text else []
    if not isinstance(node, Tag):
        return []

    fragments: List[str] = []
    visited = set()
    stack = [(child, 1) for child in reversed(list(node.children))]
    while stack and len(fragments) < limit:
        current, depth = stack.pop()
        if id(current) in visited:
            continue
        visited.add(id(current))

        if is_text_node(current):
            text = clean_text(str(current))
            if text:
                fragments.append(text)
            continue

        if not is_element(current) or depth > max_depth:
            continue
        if current.name in SKIP_TAGS or (skip_hidden and is_hidden_twin(current)):
            continue
        stack.extend((child, depth + 1) for child in reversed(list(current.children)))

    return fragments


def is_converted_node(node, max_depth: int = 5) -> bool:
    """True if the node (or a near ancestor) is already-converted output."""
    if not isinstance(node, (Tag, NavigableString)):
        return False
    if has_class(node, CONVERTED_PRICE_CLASS):
        return True
    return any(has_class(a, CONVERTED_PRICE_CLASS) for a in iter_ancestors(node, max_depth))


def is_price_element(node) -> bool:
    """
    Check whether an element looks like it holds a price.

    Looks at price attributes, price classes, and price-container classes.
    """
    if not is_element(node):
        return False

    for attr in PRICE_ATTRIBUTES:
        value = node.get(attr)
        if value is None:
            continue
        if attr == "itemprop":
            if str(value).lower() in PRICE_ITEMPROPS:
                return True
        elif attr == "aria-label":
            if re.search(r'\d', str(value)) and re.search(r'price|[$€£¥₹]', str(value), re.IGNORECASE):
                return True
        else:
            return True

    classes = class_string(node)
    if any(name in classes.split() for name in PRICE_CLASSES):
        return True
    return any(container in classes for container in PRICE_CONTAINERS)


def find_price_elements(root, limit: int = 200) -> List[Tag]:
    """
    Find the outermost price-like elements under a root.

    Args:
        root: BeautifulSoup document or element
        limit: Maximum number of elements returned

    Returns:
        Price-like elements, none nested inside another returned element
    """
    if not isinstance(root, Tag):
        return []

    found: List[Tag] = []
    selected = set()
    for element in root.find_all(True):
        if len(found) >= limit:
            break
        if element.name in SKIP_TAGS or not is_price_element(element):
            continue
        if any(id(a) in selected for a in iter_ancestors(element, max_depth=50)):
            continue
        selected.add(id(element))
        found.append(element)
    return found
