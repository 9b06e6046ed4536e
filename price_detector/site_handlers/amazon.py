"""
Amazon price handler.

Amazon splits a price across symbol, whole and fraction spans and keeps a
visually hidden "a-offscreen" copy of the full price next to them:

    <span class="a-price">
      <span class="a-offscreen">$8.48</span>
      <span aria-hidden="true">
        <span class="a-price-symbol">$</span>
        <span class="a-price-whole">8<span class="a-price-decimal">.</span></span>
        <span class="a-price-fraction">48</span>
      </span>
    </span>

Older search results use the "sx-price" family of classes instead.
"""
import re
from typing import Optional

from ..formats import render_price
from ..utils.html_utils import node_text
from ._base import BaseSiteHandler

PRICE_GROUP_CLASSES = ("a-price", "sx-price", "a-color-price")
SYMBOL_CLASSES = ("a-price-symbol", "sx-price-currency")
WHOLE_CLASSES = ("a-price-whole", "sx-price-whole")
FRACTION_CLASSES = ("a-price-fraction", "sx-price-fractional")
OFFSCREEN_CLASSES = ("a-offscreen",)


class AmazonHandler(BaseSiteHandler):
    name = "amazon"
    domains = (
        "amazon.com", "amazon.co.uk", "amazon.de", "amazon.fr", "amazon.it",
        "amazon.es", "amazon.ca", "amazon.in", "amazon.co.jp", "amazon.com.au",
    )
    target_classes = PRICE_GROUP_CLASSES + SYMBOL_CLASSES + WHOLE_CLASSES + OFFSCREEN_CLASSES

    def process(self, node, callback, settings=None) -> bool:
        groups = self.find_all_targets(node, *PRICE_GROUP_CLASSES)
        if not groups:
            # A bare component span: assemble from its price group if we can
            groups = [node.parent] if node.parent is not None else []

        found = False
        for group in groups:
            text = self._assemble(group)
            if text is None:
                offscreen = self.find_target(group, *OFFSCREEN_CLASSES)
                text = node_text(offscreen) if offscreen is not None else None
            if text is None:
                text = node_text(group)
            found = self.emit(callback, text) or found
        return found

    def _assemble(self, group) -> Optional[str]:
        """Rebuild "$8.48" (or "8,48 €") from the symbol/whole/fraction spans of a price group."""
        symbol = self.find_target(group, *SYMBOL_CLASSES)
        whole = self.find_target(group, *WHOLE_CLASSES)
        if symbol is None or whole is None:
            return None

        whole_digits = re.sub(r'\D', '', node_text(whole))
        if not whole_digits:
            return None
        fraction = self.find_target(group, *FRACTION_CLASSES)
        fraction_digits = re.sub(r'\D', '', node_text(fraction)) if fraction is not None else ""

        amount = f"{whole_digits}.{fraction_digits}" if fraction_digits else whole_digits
        return render_price(amount, node_text(symbol))
