"""Scrape a single product URL (for testing selectors on a new page)"""
import sys
import atexit
import logging
from datetime import datetime

from scrapers.site_config import load_site_configs
from scrapers.variant_scraper import VariantCatalogScraper
from main import export_results, select_site_config

# Global scraper reference for cleanup
_global_scraper = None


def _cleanup_on_exit():
    """Ensure scraper is closed before Python exits"""
    global _global_scraper
    if _global_scraper:
        _global_scraper.close()
        _global_scraper = None


atexit.register(_cleanup_on_exit)


def setup_logging():
    """Setup logging"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )
    return logging.getLogger('single_url')


def main():
    logger = setup_logging()

    args = [arg for arg in sys.argv[1:] if not arg.startswith('--')]
    headless = '--headless' in sys.argv[1:]

    if not args:
        print("\nUsage: python run_single_url.py <product_url> [site_name] [--headless]")
        print("\nExample:")
        print("  python run_single_url.py 'https://www.macys.com/shop/product/some-sandals?ID=123456'")
        print("  python run_single_url.py 'https://www.macys.com/shop/product/some-sandals?ID=123456' macys --headless")
        sys.exit(1)

    url = args[0]
    entry = {'url': url, 'extra_tags': '', 'site': args[1] if len(args) >= 2 else ''}

    site_config = select_site_config(load_site_configs(), entry)
    if not site_config:
        logger.error(f"No site configuration for {url}")
        sys.exit(1)

    logger.info("="*70)
    logger.info(f"SINGLE URL SCRAPER - {site_config['name'].upper()}")
    logger.info("="*70)

    global _global_scraper
    scraper = VariantCatalogScraper(site_config, headless=headless)
    _global_scraper = scraper

    try:
        result = scraper.scrape_product(url)
    finally:
        scraper.close()
        _global_scraper = None

    failed_urls = [{'url': url, 'error': result.error}] if result.failed else []
    for row in result.rows:
        values = ' / '.join(row[f'Option{n} Value'] for n in (1, 2, 3) if row[f'Option{n} Value'])
        logger.info(f"  {values or '(no variants)'}: {row['Variant Price']} (cost {row['Cost per item']})")

    basename = f"{site_config['name']}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    paths = export_results(result.rows, failed_urls, logger, basename=basename)

    logger.info("\n" + "="*70)
    logger.info("COMPLETE!")
    logger.info("="*70)
    logger.info(f"✓ Outcome: {result.outcome.value}")
    logger.info(f"✓ Rows: {len(result.rows)}")
    logger.info(f"✓ Output: {paths['xlsx']}")
    logger.info("="*70)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nScraping interrupted by user. Exiting...")
    except Exception as e:
        logging.error(f"Fatal error: {str(e)}")
        raise
