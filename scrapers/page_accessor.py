"""Abstract page capabilities the variant engine is written against"""
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional


class PageAccessor(ABC):
    """
    Capability surface over one live page.

    Elements returned by the query methods are opaque and only valid until
    the next mutation of the page (click, navigation). Implementations raise
    ElementNotFound, PageTimeout, StaleElement or ClickIntercepted from
    scrapers.error_handler, never driver-specific exceptions.
    """

    @abstractmethod
    def navigate(self, url: str, timeout: float):
        """Load url, raising PageTimeout if it does not load within timeout"""

    @abstractmethod
    def query_one(self, selector: str, root: Any = None) -> Optional[Any]:
        """First element matching selector (scoped to root if given) or None"""

    @abstractmethod
    def query_all(self, selector: str, root: Any = None) -> List[Any]:
        """All elements matching selector, in document order"""

    @abstractmethod
    def read_text(self, element: Any) -> str:
        pass

    @abstractmethod
    def read_attribute(self, element: Any, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def read_outer_html(self, element: Any) -> str:
        pass

    @abstractmethod
    def is_visible(self, element: Any) -> bool:
        pass

    @abstractmethod
    def scroll_into_view(self, element: Any):
        pass

    @abstractmethod
    def click(self, element: Any, timeout: float = 10, force: bool = False):
        """
        Click element.

        force=True activates the element directly (script click) and skips
        hit-testing, so overlays cannot intercept it.
        """

    @abstractmethod
    def wait_for(self, predicate: Callable[[], bool], timeout: float, poll_interval: float = 0.25) -> bool:
        """Poll predicate until truthy; raise PageTimeout when timeout elapses"""

    @abstractmethod
    def wait_for_network_settled(self, timeout: float):
        pass

    @abstractmethod
    def current_url(self) -> str:
        pass

    @abstractmethod
    def pause(self, seconds: float):
        """Fixed cooldown; tests override this to avoid real sleeps"""

    def wait_for_selector(self, selector: str, timeout: float, visible: bool = True) -> Any:
        """Wait until selector matches (a visible element, by default) and return it"""
        found = {}

        def _present():
            element = self.query_one(selector)
            if element is None:
                return False
            if visible and not self.is_visible(element):
                return False
            found['element'] = element
            return True

        self.wait_for(_present, timeout)
        return found['element']
