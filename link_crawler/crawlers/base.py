"""
Abstract fetch capability and fetcher registry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from link_crawler.utils.logging import get_logger
from link_crawler.utils.errors import CrawlerError


logger = get_logger(__name__)


@dataclass
class FetchResult:
    """Content summary and outbound links of a fetched page."""
    content: str
    links: List[str] = field(default_factory=list)


class BaseFetcher(ABC):
    """
    Abstract base class for page fetchers.

    Implementations must be safe to call from several threads at once.
    """

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        """
        Initialize fetcher with a name and configuration.

        Args:
            name: Registry name of the fetcher (e.g. 'fake', 'http')
            config: Optional fetcher-specific configuration
        """
        self.name = name
        self.config = config or {}

    @abstractmethod
    def fetch(self, address: str) -> FetchResult:
        """
        Fetch a page.

        Args:
            address: Address of the page

        Returns:
            Page content summary and the addresses it links to

        Raises:
            FetchError: If the page cannot be fetched
        """
        pass

    def validate_config(self) -> bool:
        """
        Validate fetcher configuration.

        Returns:
            True if configuration is valid
        """
        return True

    def close(self) -> None:
        """Release any resources held by the fetcher."""
        pass


class FetcherRegistry:
    """Registry mapping fetcher names to implementations."""

    def __init__(self):
        """Initialize empty fetcher registry."""
        self._fetchers: Dict[str, type] = {}
        self._fetcher_configs: Dict[str, Dict[str, Any]] = {}

    def register(self, name: str, fetcher_class: type, default_config: Optional[Dict[str, Any]] = None) -> None:
        """
        Register a fetcher class.

        Args:
            name: Fetcher name
            fetcher_class: Class that extends BaseFetcher
            default_config: Default configuration for the fetcher

        Raises:
            CrawlerError: If fetcher class is invalid
        """
        if not issubclass(fetcher_class, BaseFetcher):
            raise CrawlerError(
                "Fetcher class must extend BaseFetcher",
                {"fetcher_name": name, "fetcher_class": str(fetcher_class)}
            )

        self._fetchers[name] = fetcher_class
        self._fetcher_configs[name] = default_config or {}
        logger.debug(f"Fetcher registered: {name}, has_config={bool(default_config)}")

    def get_fetcher(self, name: str, config: Optional[Dict[str, Any]] = None) -> BaseFetcher:
        """
        Create a fetcher instance.

        Args:
            name: Fetcher name
            config: Optional configuration merged over the registered defaults

        Returns:
            New fetcher instance

        Raises:
            CrawlerError: If fetcher is not registered or its configuration is invalid
        """
        if not self.is_registered(name):
            raise CrawlerError(
                f"Fetcher '{name}' is not registered",
                {"available_fetchers": self.list_fetchers()}
            )

        final_config = self._fetcher_configs[name].copy()
        if config:
            final_config.update(config)

        instance = self._fetchers[name](name, final_config)
        if not instance.validate_config():
            raise CrawlerError(
                f"Invalid configuration for fetcher '{name}'",
                {"config": final_config}
            )
        return instance

    def list_fetchers(self) -> List[str]:
        """
        List all registered fetcher names.

        Returns:
            Sorted list of fetcher names
        """
        return sorted(self._fetchers)

    def is_registered(self, name: str) -> bool:
        return name in self._fetchers
