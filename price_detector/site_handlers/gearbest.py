"""Gearbest price handler."""
import re

from ..formats import find_currency_markers, render_price
from ..strategies import analyze_element
from ..text_patterns import normalize_for_currency
from ..utils.html_utils import node_text
from ._base import BaseSiteHandler


class GearbestHandler(BaseSiteHandler):
    """
    Gearbest wraps prices in "my-shop-price"/"goods-price" elements, with
    the currency and the amount often in separate spans.
    """

    name = "gearbest"
    domains = ("gearbest.com", "gearbest.ma")
    target_classes = ("my-shop-price", "goods-price", "goodsPrice", "price-shop", "woocommerce-Price-amount")

    def process(self, node, callback, settings=None) -> bool:
        found = False
        for target in self.find_all_targets(node):
            currency = self.find_target(target, "currency", "woocommerce-Price-currencySymbol")
            value = self.find_target(target, "value", "goods-price-value")
            if currency is not None and value is not None and currency is not value:
                symbol = node_text(currency)
                amount = normalize_for_currency(re.sub(r'[^\d.,]', '', node_text(value)), symbol)
                if amount:
                    found = self.emit(callback, render_price(amount, symbol)) or found
                    continue

            # Prices rendered by the shop's currency switcher keep the base
            # USD amount in an attribute
            orgp = target.get("data-orgp")
            if orgp and re.fullmatch(r'\d+(?:\.\d+)?', str(orgp)):
                found = self.emit(callback, f"${orgp}") or found
                continue

            analysis = analyze_element(target, settings)
            if analysis.best is not None:
                found = self.emit(callback, analysis.best.text) or found
                continue

            text = node_text(target)
            if find_currency_markers(text):
                found = self.emit(callback, text) or found
        return found
