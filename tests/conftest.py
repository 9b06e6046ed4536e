"""Pytest configuration and fixtures."""

import pytest
from bs4 import BeautifulSoup

from price_detector.pattern_builder import PatternBuilder, PatternCache
from price_detector.pipeline import ExtractionPipeline
from price_detector.site_handlers import SiteHandlerRegistry, create_default_registry


@pytest.fixture
def parse():
    """Parse an HTML snippet and return its first element."""
    def _parse(html: str):
        return BeautifulSoup(html, "html.parser").find(True)
    return _parse


@pytest.fixture
def builder():
    """PatternBuilder with its own empty cache."""
    return PatternBuilder(PatternCache())


@pytest.fixture
def registry():
    """Fresh registry with the built-in store handlers."""
    return create_default_registry()


@pytest.fixture
def empty_registry():
    return SiteHandlerRegistry()


@pytest.fixture
def pipeline(registry, builder):
    """Pipeline with a fresh registry and pattern cache."""
    return ExtractionPipeline(registry=registry, builder=builder)


@pytest.fixture
def sample_html():
    """Sample product page for testing."""
    return """
<!DOCTYPE html>
<html>
<body>
    <div class="product-container">
        <h1 class="product-title">Sample Product</h1>
        <div class="price-container">
            <span class="price" data-price="99.99" data-currency="USD">$99.99</span>
        </div>
        <div class="deals">Deals under $20 and gifts from $2.99</div>
        <div class="availability in-stock">In Stock</div>
    </div>
</body>
</html>
"""


@pytest.fixture
def split_price_html():
    """Cdiscount-style price split across nested font/span siblings."""
    return (
        '<div class="fpPrice"><font><font>449€</font></font>'
        '<span><font><font> 00</font></font></span></div>'
    )


@pytest.fixture
def amazon_price_html():
    return (
        '<span class="a-price" data-a-size="xl">'
        '<span class="a-offscreen">$8.48</span>'
        '<span aria-hidden="true">'
        '<span class="a-price-symbol">$</span>'
        '<span class="a-price-whole">8<span class="a-price-decimal">.</span></span>'
        '<span class="a-price-fraction">48</span>'
        '</span></span>'
    )


@pytest.fixture
def woocommerce_html():
    return (
        '<span class="woocommerce-Price-amount amount"><bdi>6.26'
        '<span class="woocommerce-Price-currencySymbol">$</span></bdi></span>'
    )
