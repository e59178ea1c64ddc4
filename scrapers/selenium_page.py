"""Selenium implementation of the page accessor"""
import time
from contextlib import contextmanager

from selenium.common.exceptions import (
    ElementClickInterceptedException,
    ElementNotInteractableException,
    InvalidSelectorException,
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait

from scrapers.error_handler import (
    ClickIntercepted,
    ElementNotFound,
    PageTimeout,
    ScraperError,
    StaleElement,
)
from scrapers.page_accessor import PageAccessor


@contextmanager
def translate_driver_errors(action):
    """Re-raise Selenium exceptions as the engine's own error types"""
    try:
        yield
    except StaleElementReferenceException as e:
        raise StaleElement(f"{action}: element is stale") from e
    except (ElementClickInterceptedException, ElementNotInteractableException) as e:
        raise ClickIntercepted(f"{action}: {e.msg}") from e
    except TimeoutException as e:
        raise PageTimeout(f"{action}: timed out") from e
    except (NoSuchElementException, InvalidSelectorException) as e:
        raise ElementNotFound(f"{action}: {e.msg}") from e
    except WebDriverException as e:
        raise ScraperError(f"{action}: {e.msg}") from e


class SeleniumPage(PageAccessor):
    """PageAccessor backed by a Selenium WebDriver (regular or undetected_chromedriver)"""

    def __init__(self, driver):
        self.driver = driver

    def navigate(self, url, timeout):
        with translate_driver_errors(f"navigate {url}"):
            self.driver.set_page_load_timeout(timeout)
            self.driver.get(url)

    def query_one(self, selector, root=None):
        scope = root if root is not None else self.driver
        with translate_driver_errors(f"query {selector}"):
            elements = scope.find_elements(By.CSS_SELECTOR, selector)
        return elements[0] if elements else None

    def query_all(self, selector, root=None):
        scope = root if root is not None else self.driver
        with translate_driver_errors(f"query all {selector}"):
            return scope.find_elements(By.CSS_SELECTOR, selector)

    def read_text(self, element):
        with translate_driver_errors("read text"):
            # .text is empty for elements outside the viewport, textContent is not
            text = element.text or element.get_attribute('textContent') or ''
        return text.strip()

    def read_attribute(self, element, name):
        with translate_driver_errors(f"read attribute {name}"):
            return element.get_attribute(name)

    def read_outer_html(self, element):
        with translate_driver_errors("read outerHTML"):
            return element.get_attribute('outerHTML') or ''

    def is_visible(self, element):
        try:
            return element.is_displayed()
        except StaleElementReferenceException:
            return False

    def scroll_into_view(self, element):
        with translate_driver_errors("scroll into view"):
            self.driver.execute_script("arguments[0].scrollIntoView({block: 'center'});", element)

    def click(self, element, timeout=10, force=False):
        if force:
            with translate_driver_errors("forced click"):
                self.driver.execute_script("arguments[0].click();", element)
            return

        with translate_driver_errors("click"):
            WebDriverWait(self.driver, timeout).until(
                lambda d: element.is_displayed() and element.is_enabled()
            )
            element.click()

    def wait_for(self, predicate, timeout, poll_interval=0.25):
        wait = WebDriverWait(
            self.driver,
            timeout,
            poll_frequency=poll_interval,
            ignored_exceptions=(StaleElementReferenceException, StaleElement, ElementNotFound),
        )
        with translate_driver_errors("wait for condition"):
            return wait.until(lambda d: predicate())

    def wait_for_network_settled(self, timeout):
        """Wait for readyState complete and a stable count of loaded resources"""
        state = {'count': -1}

        def _settled():
            ready = self.driver.execute_script("return document.readyState") == 'complete'
            count = self.driver.execute_script(
                "return window.performance ? performance.getEntriesByType('resource').length : 0"
            )
            stable = count == state['count']
            state['count'] = count
            return ready and stable

        self.wait_for(_settled, timeout, poll_interval=0.5)

    def current_url(self):
        with translate_driver_errors("current url"):
            return self.driver.current_url

    def pause(self, seconds):
        time.sleep(seconds)
