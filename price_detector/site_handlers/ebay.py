"""eBay price handler."""
import re

from ..formats import find_currency_markers, render_price
from ..utils.html_utils import iter_text_fragments, node_text
from ._base import BaseSiteHandler

EBAY_PRICE_CLASSES = (
    "x-price-primary",
    "x-bin-price",
    "x-price-approx",
    "s-item__price",
    "display-price",
    "ux-textspans",
    "notranslate",
)

EBAY_CONTAINER_CLASSES = (
    "x-price-section",
    "x-buybox__price-section",
    "s-item__details",
)

EBAY_PRICE_ATTRIBUTES = ("data-price", "content", "itemprop")


class EbayHandler(BaseSiteHandler):
    name = "ebay"
    domains = ("ebay.com", "ebay.co.uk", "ebay.de", "ebay.fr", "ebay.it", "ebay.es", "ebay.ca", "ebay.com.au")
    target_classes = EBAY_PRICE_CLASSES + EBAY_CONTAINER_CLASSES

    def process(self, node, callback, settings=None) -> bool:
        found = False
        seen = set()
        for target in self.find_all_targets(node, *EBAY_PRICE_CLASSES):
            for text in self._texts(target):
                if text in seen:
                    continue
                seen.add(text)
                found = self.emit(callback, text) or found

        if not found and self.find_target(node, *EBAY_CONTAINER_CLASSES) is not None:
            text = node_text(node)
            if find_currency_markers(text):
                found = self.emit(callback, text)
        return found

    def _texts(self, target):
        """Price text units of one eBay price element."""
        value = target.get("data-price") or (target.get("content") if target.get("itemprop") == "price" else None)
        if value and re.fullmatch(r'\d+(?:\.\d+)?', str(value).strip()):
            currency = target.get("data-currency") or target.get("data-currency-code") or "USD"
            yield render_price(str(value).strip(), currency)
            return

        for fragment in iter_text_fragments(target, limit=6):
            if re.search(r'\d', fragment) and find_currency_markers(fragment):
                yield fragment
