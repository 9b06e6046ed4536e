"""Base site handler interface for all per-domain handlers."""
from typing import Any, Callable, Optional, Protocol, Sequence, Tuple

from ..utils.html_utils import clean_text, has_class, is_element, iter_descendants

TextCallback = Callable[[str], Any]


class SiteHandlerProtocol(Protocol):
    """Protocol that all site handlers must implement."""

    name: str
    domains: Sequence[str]

    def is_target_node(self, node) -> bool:
        """Whether the node holds markup this handler understands."""
        ...

    def process(self, node, callback: TextCallback, settings=None) -> bool:
        """Call callback once per price text unit; return True if any was found."""
        ...


class BaseSiteHandler:
    """Base class for site handlers (optional, for shared utilities)."""

    name: str = "base"
    domains: Tuple[str, ...] = ()
    target_classes: Tuple[str, ...] = ()

    def is_target_node(self, node) -> bool:
        """True if the node, or an element inside it, has one of the target classes."""
        if not is_element(node):
            return False
        if has_class(node, *self.target_classes):
            return True
        return self.find_target(node) is not None

    def find_target(self, node, *classes: str):
        """First element at or under node with one of the given classes."""
        classes = classes or self.target_classes
        if has_class(node, *classes):
            return node
        for element in iter_descendants(node, max_depth=8, limit=300):
            if has_class(element, *classes):
                return element
        return None

    def find_all_targets(self, node, *classes: str, limit: int = 20):
        classes = classes or self.target_classes
        if has_class(node, *classes):
            return [node]
        return [
            element for element in iter_descendants(node, max_depth=8, limit=300)
            if has_class(element, *classes)
        ][:limit]

    def process(self, node, callback: TextCallback, settings=None) -> bool:
        raise NotImplementedError

    @staticmethod
    def emit(callback: TextCallback, text: Optional[str]) -> bool:
        """Hand one text unit to the callback; empty text is ignored."""
        text = clean_text(text)
        if not text:
            return False
        callback(text)
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, domains={list(self.domains)!r})"
