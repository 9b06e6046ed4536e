"""
Cdiscount price handler.

Cdiscount renders prices as "449€" followed by the cents in a separate
element ("449€ 00" or "449€<sup>00</sup>").
"""
import re

from ..strategies import analyze_element
from ..utils.html_utils import node_text
from ._base import BaseSiteHandler

SPLIT_PRICE = re.compile(r'(\d[\d .]*)\s*€\s*(\d{2})(?!\d)')


class CdiscountHandler(BaseSiteHandler):
    name = "cdiscount"
    domains = ("cdiscount.com", "cdiscount.fr")
    target_classes = ("price", "fpPrice", "c-price", "priceColor", "prdtPrice")

    def process(self, node, callback, settings=None) -> bool:
        target = self.find_target(node)
        if target is None:
            return False

        text = node_text(target)

        # Split format: "449€ 00"
        match = SPLIT_PRICE.search(text)
        if match:
            whole = re.sub(r'[ .]', '', match.group(1))
            return self.emit(callback, f"{whole},{match.group(2)} €")

        # Superscript cents without a currency symbol: "449<sup>99</sup>"
        sup = target.find("sup")
        if sup is not None:
            cents = node_text(sup)
            whole = text[: len(text) - len(cents)].strip() if text.endswith(cents) else ""
            if re.fullmatch(r'\d+', whole) and re.fullmatch(r'\d{2}', cents):
                return self.emit(callback, f"{whole},{cents} €")

        analysis = analyze_element(target, settings)
        if analysis.best is not None:
            return self.emit(callback, analysis.best.text)

        if "€" in text:
            return self.emit(callback, text)
        return False
