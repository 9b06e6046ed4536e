"""
Site handler registry.

Site handlers know the price markup of one store. A registry maps domains
to handlers; at most one handler is active for a site.

Example:
    >>> registry = create_default_registry(site="www.amazon.com")
    >>> texts = []
    >>> if registry.process(node, texts.append):
    >>>     print(texts)
"""

import inspect
from typing import Callable, List, Optional
from urllib.parse import urlparse

import structlog

from ..exceptions import HandlerRegistrationError
from ._base import BaseSiteHandler, SiteHandlerProtocol, TextCallback
from .amazon import AmazonHandler
from .cdiscount import CdiscountHandler
from .ebay import EbayHandler
from .gearbest import GearbestHandler

logger = structlog.get_logger(__name__, component="site_handlers")


def normalize_site(site: Optional[str]) -> str:
    """
    Normalize a hostname or URL to a bare lowercase domain.

    "https://www.Amazon.com/dp/X" and "amazon.com:443" both become "amazon.com".
    """
    if not site:
        return ""
    site = str(site).strip().lower()
    if "://" in site:
        site = urlparse(site).hostname or ""
    site = site.split("/")[0].split(":")[0]
    if site.startswith("www."):
        site = site[4:]
    return site


class SiteHandlerRegistry:
    """Registry of site handlers for one extraction context."""

    def __init__(self, site: Optional[str] = None):
        self._handlers: List[SiteHandlerProtocol] = []
        self.site = site

    def register(self, handler: SiteHandlerProtocol) -> None:
        """
        Register a handler.

        A handler with the same name replaces the old one. Claiming a domain
        already served by another handler is rejected.

        Raises:
            HandlerRegistrationError: If the handler is malformed or its
                domains clash with a registered handler
        """
        name = getattr(handler, "name", None)
        domains = getattr(handler, "domains", None)
        if not name or not isinstance(name, str):
            raise HandlerRegistrationError(f"Handler {handler!r} has no name")
        if not domains or isinstance(domains, str):
            raise HandlerRegistrationError(f"Handler '{name}' must declare a list of domains")
        for method in ("is_target_node", "process"):
            if not callable(getattr(handler, method, None)):
                raise HandlerRegistrationError(f"Handler '{name}' is missing {method}()")

        wanted = {normalize_site(d) for d in domains}
        for existing in self._handlers:
            if existing.name == name:
                continue
            clash = wanted & {normalize_site(d) for d in existing.domains}
            if clash:
                raise HandlerRegistrationError(
                    f"Domain(s) {sorted(clash)} already handled by '{existing.name}'"
                )

        self._handlers = [h for h in self._handlers if h.name != name]
        self._handlers.append(handler)
        logger.debug("site_handler_registered", handler=name, domains=sorted(wanted))

    def unregister(self, name: str) -> bool:
        """Remove a handler by name. Returns True if one was removed."""
        before = len(self._handlers)
        self._handlers = [h for h in self._handlers if h.name != name]
        return len(self._handlers) < before

    def clear(self) -> None:
        self._handlers.clear()

    @property
    def handlers(self) -> List[SiteHandlerProtocol]:
        return list(self._handlers)

    def list_domains(self) -> List[str]:
        """
        Get list of all registered domains.

        Returns:
            List of domain strings
        """
        return [normalize_site(d) for h in self._handlers for d in h.domains]

    def get_handler_for_site(self, site: Optional[str]) -> Optional[SiteHandlerProtocol]:
        """
        Find the handler for a site.

        Subdomains match their parent domain ("smile.amazon.com" uses the
        amazon.com handler).

        Args:
            site: Hostname or URL

        Returns:
            Handler or None if no handler serves the site
        """
        host = normalize_site(site)
        if not host:
            return None
        for handler in self._handlers:
            for domain in handler.domains:
                domain = normalize_site(domain)
                if host == domain or host.endswith("." + domain):
                    return handler
        return None

    def get_handler_for_current_site(self) -> Optional[SiteHandlerProtocol]:
        return self.get_handler_for_site(self.site)

    def has_handler(self, site: Optional[str] = None) -> bool:
        return self.get_handler_for_site(site or self.site) is not None

    def _resolve(self, node, site: Optional[str]):
        handler = self.get_handler_for_site(site or self.site)
        if handler is None:
            return None
        try:
            if not handler.is_target_node(node):
                return None
        except Exception as e:
            logger.warning("site_handler_target_check_failed", handler=handler.name, error=str(e))
            return None
        return handler

    def process(
        self,
        node,
        callback: TextCallback,
        settings=None,
        site: Optional[str] = None,
    ) -> bool:
        """
        Process a node with the handler for the site.

        Args:
            node: Element to process
            callback: Called once per price text unit the handler finds
            settings: Caller ExtractionSettings
            site: Hostname or URL (defaults to the registry's site)

        Returns:
            True if a handler processed the node and found prices
        """
        handler = self._resolve(node, site)
        if handler is None:
            return False
        try:
            result = handler.process(node, callback, settings)
            if inspect.isawaitable(result):
                # Coroutine handlers need process_async()
                if inspect.iscoroutine(result):
                    result.close()
                logger.warning("site_handler_async_in_sync_context", handler=handler.name)
                return False
            return bool(result)
        except Exception as e:
            logger.warning("site_handler_failed", handler=handler.name, error=str(e), error_type=type(e).__name__)
            return False

    async def process_async(
        self,
        node,
        callback: TextCallback,
        settings=None,
        site: Optional[str] = None,
    ) -> bool:
        """Like process(), but awaits handlers that return awaitables."""
        handler = self._resolve(node, site)
        if handler is None:
            return False
        try:
            result = handler.process(node, callback, settings)
            if inspect.isawaitable(result):
                result = await result
            return bool(result)
        except Exception as e:
            logger.warning("site_handler_failed", handler=handler.name, error=str(e), error_type=type(e).__name__)
            return False

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"SiteHandlerRegistry(site={self.site!r}, handlers={[h.name for h in self._handlers]!r})"


DEFAULT_HANDLERS: List[Callable[[], SiteHandlerProtocol]] = [
    CdiscountHandler,
    GearbestHandler,
    AmazonHandler,
    EbayHandler,
]


def create_default_registry(site: Optional[str] = None) -> SiteHandlerRegistry:
    """Create a fresh registry with the built-in store handlers."""
    registry = SiteHandlerRegistry(site=site)
    for factory in DEFAULT_HANDLERS:
        registry.register(factory())
    return registry


__all__ = [
    "SiteHandlerRegistry",
    "SiteHandlerProtocol",
    "BaseSiteHandler",
    "TextCallback",
    "CdiscountHandler",
    "GearbestHandler",
    "AmazonHandler",
    "EbayHandler",
    "create_default_registry",
    "normalize_site",
]
