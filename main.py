"""Main execution script: scrape every configured product URL into a catalog import file"""
import os
import json
import logging
from datetime import datetime
from urllib.parse import urlparse
from tqdm import tqdm

from scrapers.site_config import load_site_configs
from scrapers.variant_scraper import VariantCatalogScraper

from utils.data_processor import DataProcessor
from utils.excel_exporter import ExcelExporter

PRODUCT_URLS_PATH = os.path.join('config', 'product_urls.json')
OUTPUT_DIR = os.path.join('data', 'processed')


def setup_logging():
    """Setup logging configuration"""
    os.makedirs('logs', exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(f'logs/main_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log', encoding='utf-8'),
            logging.StreamHandler()
        ]
    )
    return logging.getLogger('main')


def load_product_urls(path=PRODUCT_URLS_PATH):
    """
    Load the ordered list of product URLs

    Entries are either plain URL strings or {"url", "extra_tags", "site"} objects.

    Returns:
        list: [{"url", "extra_tags", "site"}] with blanks for missing keys
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logging.error(f"Error loading product URLs from {path}: {str(e)}")
        return []

    entries = []
    for item in data:
        if isinstance(item, str):
            item = {'url': item}
        url = (item.get('url') or '').strip()
        if not url:
            continue
        entries.append({
            'url': url,
            'extra_tags': item.get('extra_tags', ''),
            'site': item.get('site', ''),
        })
    return entries


def select_site_config(site_configs, entry):
    """Site for a URL entry: explicit site name, then domain match, then the first site"""
    if entry.get('site'):
        for site_config in site_configs:
            if site_config['name'] == entry['site']:
                return site_config
        return None

    host = urlparse(entry['url']).netloc.lower()
    for site_config in site_configs:
        if any(host == domain or host.endswith('.' + domain) for domain in site_config.get('domains', [])):
            return site_config

    return site_configs[0] if site_configs else None


def scrape_urls(scraper, entries, logger, delay_between_products=0):
    """
    Scrape entries one after another with the same scraper

    A URL that fails never stops the batch.

    Returns:
        tuple: (rows, failed_urls) where failed_urls is a list of {"url", "error"}
    """
    rows = []
    failed_urls = []

    for idx, entry in enumerate(tqdm(entries, desc=f"Scraping {scraper.site_name}"), 1):
        url = entry['url']
        if not scraper.check_health():
            logger.error(f"Scraper unhealthy, skipping remaining {len(entries) - idx + 1} URLs")
            failed_urls.extend({'url': e['url'], 'error': 'Skipped: scraper unhealthy'} for e in entries[idx - 1:])
            break

        try:
            result = scraper.scrape_product(url, entry.get('extra_tags', ''))
        except Exception as e:
            logger.error(f"Error scraping {url}: {str(e)}")
            failed_urls.append({'url': url, 'error': str(e)})
            continue

        if result.failed:
            logger.info(f"[{idx}/{len(entries)}] ✗ {url}: {result.error}")
            failed_urls.append({'url': url, 'error': result.error})
        else:
            rows.extend(result.rows)
            logger.info(f"[{idx}/{len(entries)}] ✓ {len(result.rows)} rows ({result.outcome.value})")

        if delay_between_products and idx < len(entries):
            scraper.page.pause(delay_between_products)

    return rows, failed_urls


def scrape_site(site_config, entries, logger, headless=False, delay_between_products=2):
    """
    Scrape all entries that belong to one site with a single browser

    Returns:
        tuple: (rows, failed_urls)
    """
    site_name = site_config.get('name', 'unknown')

    logger.info(f"\n{'='*70}")
    logger.info(f"Starting scrape of {site_name} ({len(entries)} URLs)")
    logger.info(f"{'='*70}")

    scraper = None
    try:
        scraper = VariantCatalogScraper(site_config, headless=headless)
        rows, failed_urls = scrape_urls(scraper, entries, logger, delay_between_products)
        logger.info(f"✓ Completed {site_name}: {len(rows)} rows, {len(failed_urls)} failed URLs")
        return rows, failed_urls
    except Exception as e:
        logger.error(f"Error scraping site {site_name}: {str(e)}")
        return [], [{'url': entry['url'], 'error': str(e)} for entry in entries]
    finally:
        if scraper:
            scraper.close()


def export_results(rows, failed_urls, logger, output_dir=OUTPUT_DIR, basename=None):
    """Process, validate and export the rows; returns the written paths"""
    basename = basename or f"products_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    processor = DataProcessor()
    exporter = ExcelExporter()

    if rows:
        df = processor.process_products(rows)
        df = processor.clean_data(df)

        logger.info("\nValidating data...")
        processor.validate_data(df)

        stats = processor.get_summary_statistics(df)
        logger.info("\nSummary Statistics:")
        logger.info(f"  Total rows: {stats['total_rows']}")
        logger.info(f"  Unique products: {stats['unique_products']}")
        logger.info(f"  Average price: ${stats['average_price']}")
        logger.info(f"  Price range: ${stats['price_range']['min']} - ${stats['price_range']['max']}")
        rows = df.to_dict('records')
    else:
        stats = None
        logger.error("No products scraped.")

    paths = exporter.export(rows, failed_urls, output_dir, basename)
    if stats:
        exporter.export_summary(stats, os.path.join(output_dir, f"{basename}_summary.xlsx"))
    return paths


def main():
    """Main execution function"""
    logger = setup_logging()
    logger.info("="*70)
    logger.info("VARIANT CATALOG SCRAPER")
    logger.info("="*70)

    os.makedirs(OUTPUT_DIR, exist_ok=True)

    logger.info("\nLoading site configurations...")
    site_configs = load_site_configs()
    logger.info(f"Loaded {len(site_configs)} site configurations")
    if not site_configs:
        logger.error("No site configurations found. Exiting.")
        return

    entries = load_product_urls()
    logger.info(f"Loaded {len(entries)} product URLs")
    if not entries:
        logger.error("No product URLs found. Exiting.")
        return

    # Group by site, keeping the input order within each site
    by_site = {}
    failed_urls = []
    for entry in entries:
        site_config = select_site_config(site_configs, entry)
        if site_config is None:
            logger.warning(f"No site configuration for {entry['url']}")
            failed_urls.append({'url': entry['url'], 'error': 'No site configuration'})
            continue
        by_site.setdefault(site_config['name'], (site_config, []))[1].append(entry)

    all_rows = []
    for site_config, site_entries in by_site.values():
        rows, failed = scrape_site(site_config, site_entries, logger)
        all_rows.extend(rows)
        failed_urls.extend(failed)

    logger.info(f"\n{'='*70}")
    logger.info("DATA PROCESSING AND EXPORT")
    logger.info(f"{'='*70}")
    logger.info(f"Total rows scraped: {len(all_rows)}")
    if failed_urls:
        logger.warning(f"Failed URLs: {len(failed_urls)}/{len(entries)}")

    paths = export_results(all_rows, failed_urls, logger)

    logger.info(f"\n{'='*70}")
    logger.info("SCRAPING COMPLETE!")
    logger.info(f"{'='*70}")
    for kind, path in paths.items():
        logger.info(f"✓ {kind}: {path}")
    logger.info(f"{'='*70}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nScraping interrupted by user. Exiting...")
    except Exception as e:
        logging.error(f"Fatal error: {str(e)}")
        raise
