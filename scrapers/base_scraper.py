"""Base scraper class: browser session, logging, navigation retries and health tracking"""
import logging
import os
import sys
from abc import ABC, abstractmethod
from datetime import datetime

import undetected_chromedriver as uc
from selenium.common.exceptions import WebDriverException

from scrapers.error_handler import ErrorHandler, ErrorType, NavigationError, ScraperError
from scrapers.selenium_page import SeleniumPage


def setup_site_logger(site_name, log_dir='logs', level=logging.INFO):
    """
    Per-site logger writing to logs/<site>_<YYYYMMDD>.log and the console

    Handlers are replaced on every call so repeated scraper instances do not
    duplicate lines.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f'{site_name}_{datetime.now().strftime("%Y%m%d")}.log')

    logger = logging.getLogger(site_name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = []

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Prevent propagation to root logger to avoid duplicate messages
    logger.propagate = False
    return logger


class BaseScraper(ABC):
    """Base scraper class for all site scrapers"""

    def __init__(self, site_config, headless=False, page=None):
        self.site_config = site_config
        self.site_name = site_config['name']
        self.headless = headless
        self.driver = None
        self.page = page
        self.timeouts = site_config['timeouts']

        self.logger = setup_site_logger(self.site_name)
        self.error_handler = ErrorHandler(self.logger)

        # Health monitoring
        self.health_status = {
            'consecutive_failures': 0,
            'total_requests': 0,
            'successful_requests': 0,
            'last_success_time': None,
            'last_failure_time': None
        }

        if self.page is None:
            self.setup_selenium()

    def setup_selenium(self):
        """Start undetected ChromeDriver and wrap it in a page accessor"""
        if self.driver is not None:
            self.logger.info("Browser already initialized, skipping...")
            return

        options = uc.ChromeOptions()
        if self.headless:
            options.add_argument('--headless=new')
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")
        options.add_argument("--window-size=1920,1080")
        options.page_load_strategy = 'normal'
        options.add_experimental_option("prefs", {
            "profile.default_content_setting_values.notifications": 2,
            "credentials_enable_service": False,
            "profile.password_manager_enabled": False,
        })

        try:
            self.driver = uc.Chrome(options=options, use_subprocess=True)
        except WebDriverException as e:
            self.logger.error(f"Error setting up ChromeDriver: {str(e)}")
            raise

        self.page = SeleniumPage(self.driver)
        self.logger.info(f"Undetected ChromeDriver initialized for {self.site_name}")

    def _record_success(self):
        self.health_status['successful_requests'] += 1
        self.health_status['consecutive_failures'] = 0
        self.health_status['last_success_time'] = datetime.now()

    def _record_failure(self):
        self.health_status['consecutive_failures'] += 1
        self.health_status['last_failure_time'] = datetime.now()

    def get_page(self, url, max_retries=None):
        """
        Navigate to url and wait for the product identity element.

        Retries with a growing pause between attempts; raises NavigationError
        once the retry budget is used up.
        """
        navigation = self.site_config['navigation']
        max_retries = max_retries or navigation['max_retries']
        identity = self.site_config['selectors']['identity']
        last_error = None
        attempts = 0

        for attempt in range(max_retries):
            attempts += 1
            self.health_status['total_requests'] += 1
            self.logger.info(f"Fetching: {url} (attempt {attempt + 1}/{max_retries})")
            try:
                self.page.navigate(url, self.timeouts['page_load'])
                if identity:
                    self.page.wait_for_selector(identity, self.timeouts['identity'])
                self._record_success()
                self.logger.info(f"✓ Page loaded: {url}")
                return True
            except ScraperError as e:
                last_error = e
                self._record_failure()
                recovery = self.error_handler.handle_error(e, attempt, context={'url': url})
                self.logger.warning(f"Navigation attempt {attempt + 1} failed: {str(e)} ({recovery['message']})")
                # A dead browser session will not recover by retrying
                if recovery['error_type'] is ErrorType.INVALID_SESSION:
                    break
                if attempt < max_retries - 1:
                    delay = navigation['retry_backoff'] * (attempt + 1)
                    self.logger.info(f"Retrying in {delay}s...")
                    self.page.pause(delay)

        raise NavigationError(f"Failed to load {url} after {attempts} attempts: {str(last_error)}")

    @abstractmethod
    def scrape_product(self, url, extra_tags=''):
        """
        Scrape single product - must be implemented by child class

        Args:
            url: Product URL
            extra_tags: Additional tags to merge into the product tags

        Returns:
            PageResult
        """
        pass

    def get_health_status(self) -> dict:
        """Get current health status of the scraper"""
        success_rate = 0
        if self.health_status['total_requests'] > 0:
            success_rate = (self.health_status['successful_requests'] / self.health_status['total_requests']) * 100

        return {
            **self.health_status,
            'success_rate': f"{success_rate:.1f}%",
            'is_healthy': self.health_status['consecutive_failures'] < 5
        }

    def check_health(self) -> bool:
        """Check if scraper is healthy enough to continue"""
        if self.health_status['consecutive_failures'] >= 10:
            self.logger.error("Too many consecutive failures, scraper unhealthy")
            return False

        if self.health_status['total_requests'] > 20:
            success_rate = (self.health_status['successful_requests'] / self.health_status['total_requests']) * 100
            if success_rate < 20:
                self.logger.error(f"Success rate too low ({success_rate:.1f}%), scraper unhealthy")
                return False

        return True

    def close(self):
        """Quit the browser and log the final health status"""
        if self.driver:
            driver_ref = self.driver
            self.driver = None
            try:
                driver_ref.quit()
                self.logger.info(f"WebDriver closed for {self.site_name}")
            except (OSError, WebDriverException) as e:
                self.logger.warning(f"Error closing driver: {str(e)}")

        health = self.get_health_status()
        self.logger.info(
            f"Final health status: {health['success_rate']} success rate, "
            f"{health['consecutive_failures']} consecutive failures"
        )
