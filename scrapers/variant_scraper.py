"""Product page scraper: one output row per variant combination"""
from dataclasses import dataclass, field
from typing import List

from scrapers.base_scraper import BaseScraper
from scrapers.combination_iterator import iterate_combinations
from scrapers.error_handler import NavigationError, Outcome, PageTimeout, ScraperError
from scrapers.product_extractor import extract_invariants, extract_snapshot
from scrapers.selection_controller import SelectionController
from scrapers.variant_discovery import discover_variant_groups
from utils.data_processor import DataProcessor


@dataclass
class PageResult:
    """What one product URL produced for the batch runner"""
    url: str
    rows: List[dict] = field(default_factory=list)
    outcome: Outcome = Outcome.OK
    error: str = ''

    @property
    def failed(self):
        return self.outcome is Outcome.FATAL


class VariantCatalogScraper(BaseScraper):
    """
    Scraper for product pages with interactive variant selectors.

    The selector table comes from the site configuration, so a new site
    needs a config entry, not a subclass.
    """

    def __init__(self, site_config, headless=False, page=None):
        super().__init__(site_config, headless=headless, page=page)
        self.data_processor = DataProcessor()

    def settle(self):
        """Let the page's own post-load scripts finish before reading it"""
        try:
            self.page.wait_for_network_settled(self.timeouts['network_settled'])
        except PageTimeout:
            self.logger.info("Network did not go idle, continuing")
        except ScraperError as e:
            self.logger.debug(f"Could not watch network activity: {str(e)}")
        self.page.pause(self.timeouts['settle_after_load'])

    def scrape_product(self, url, extra_tags=''):
        """
        Scrape one product page into catalog rows

        Args:
            url: Product URL
            extra_tags: Comma separated tags merged into the breadcrumb tags

        Returns:
            PageResult: rows plus OK / DEGRADED / FATAL outcome
        """
        # Errors recorded on the previous product page must not count against this one
        self.error_handler.reset()

        try:
            self.get_page(url)
        except NavigationError as e:
            self.logger.error(f"✗ {str(e)}")
            return PageResult(url=url, outcome=Outcome.FATAL, error=str(e))

        self.settle()

        invariants = extract_invariants(self.page, self.site_config, url, extra_tags)
        self.logger.info(f"Product: {invariants.title or '(no title)'}")
        groups = discover_variant_groups(self.page, self.site_config)

        controller = SelectionController(self.page, self.site_config, self.logger, self.error_handler)
        snapshots = []
        try:
            for combination in iterate_combinations(self.page, self.site_config, controller, self.logger, groups):
                snapshot = extract_snapshot(self.page, self.site_config, combination, url)
                snapshots.append(snapshot)
                self.logger.info(
                    f"✓ {combination.describe()}: cost {snapshot.cost_per_item}, price {snapshot.variant_price}"
                )
        except ScraperError as e:
            # Keep whatever was captured before the page stopped cooperating
            self.logger.warning(f"⚠️ Variant traversal stopped early: {str(e)}")
            recovery = self.error_handler.handle_error(e, 0, context={'url': url})
            self.logger.debug(recovery['message'])

        if not snapshots:
            message = "No combinations could be captured"
            self.logger.error(f"✗ {message}: {url}")
            return PageResult(url=url, outcome=Outcome.FATAL, error=message)

        rows = self.data_processor.assemble_rows(invariants, groups, snapshots, self.site_config)

        degraded = invariants.degraded_fields or any(s.outcome is not Outcome.OK for s in snapshots)
        outcome = Outcome.DEGRADED if degraded else Outcome.OK
        self.logger.info(f"✓ {len(rows)} rows from {url} ({outcome.value})")
        return PageResult(url=url, rows=rows, outcome=outcome)
