"""Page-level and per-combination extraction of catalog fields"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

from scrapers.error_handler import Outcome, PageTimeout, ScraperError, StepResult
from utils.formatters import (
    clean_breadcrumb_text,
    extract_sku_from_url,
    format_handle_from_url,
    merge_tags,
    normalize_image_url,
    sanitize_description_html,
)
from utils.pricing import PriceFields, prices_from_text

if TYPE_CHECKING:
    from scrapers.combination_iterator import Combination

logger = logging.getLogger('product_extractor')


@dataclass(frozen=True)
class ProductInvariants:
    """Page-level facts, read once per visit"""
    handle: str
    title: str
    url: str
    brand: str = ''
    product_name: str = ''
    description_html: str = ''
    tags: str = ''
    main_image_url: str = ''
    degraded_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CombinationSnapshot:
    """Price/image/SKU captured while the page showed one combination"""
    combination: 'Combination'
    price_text: str
    prices: PriceFields
    main_image_url: str
    sku: str
    outcome: Outcome = Outcome.OK

    @property
    def cost_per_item(self):
        return self.prices.cost_per_item

    @property
    def variant_price(self):
        return self.prices.variant_price

    @property
    def compare_at_price(self):
        return self.prices.compare_at_price


def _image_source(page, element, lazy_attributes):
    """Lazy-load attribute wins over src, since src is often a placeholder"""
    for attribute in lazy_attributes:
        value = page.read_attribute(element, attribute)
        if value and value.strip() and not value.startswith('data:'):
            return value.strip()
    return (page.read_attribute(element, 'src') or '').strip()


def read_main_image(page, site_config):
    """Current main image URL without waiting; '' if there is none"""
    selector = site_config['selectors'].get('main_image')
    if not selector:
        return ''
    try:
        element = page.query_one(selector)
        if element is None:
            return ''
        return _image_source(page, element, site_config.get('image_lazy_attributes', []))
    except ScraperError:
        return ''


def extract_main_image(page, site_config):
    """Main image URL, waiting (bounded) for the image to become visible"""
    selector = site_config['selectors'].get('main_image')
    if not selector:
        return StepResult.degraded('', "No main image selector configured")

    try:
        page.wait_for_selector(selector, site_config['timeouts']['image'])
    except ScraperError as e:
        return StepResult.degraded('', f"Could not extract main image: {str(e)}")

    image_url = read_main_image(page, site_config)
    if not image_url:
        return StepResult.degraded('', "Main image has no source")

    try:
        page_url = page.current_url()
    except ScraperError:
        page_url = ''
    return StepResult(normalize_image_url(image_url, page_url))


def _read_price_region(page, selectors):
    for selector in selectors:
        element = page.query_one(selector)
        if element is None or not page.is_visible(element):
            continue
        text = page.read_text(element) or (page.read_attribute(element, 'aria-label') or '').strip()
        if text:
            return text
    return ''


def extract_price_text(page, site_config):
    """
    Raw price text: the cost region first, the current price region as fallback.

    Waits (bounded) only when neither region is on the page yet.
    """
    selectors = [
        selector for selector in (
            site_config['selectors'].get('cost_price'),
            site_config['selectors'].get('current_price'),
        ) if selector
    ]
    if not selectors:
        return StepResult.degraded('', "No price selectors configured")

    try:
        text = _read_price_region(page, selectors)
        if not text:
            page.wait_for(
                lambda: bool(_read_price_region(page, selectors)),
                site_config['timeouts']['price'],
            )
            text = _read_price_region(page, selectors)
    except ScraperError as e:
        return StepResult.degraded('', f"Could not extract displayed price: {str(e)}")

    return StepResult(text)


def extract_sku(page, site_config, original_url):
    """SKU from the URL the page ended up on (selections often rewrite it), else the requested URL"""
    sku_config = site_config.get('sku', {})
    try:
        current = page.current_url()
    except ScraperError:
        current = ''

    for url in (current, original_url):
        sku = extract_sku_from_url(url, sku_config.get('query_param'), sku_config.get('path_pattern'))
        if sku:
            return sku
    return ''


def extract_snapshot(page, site_config, combination, original_url):
    """
    Snapshot of the settled page for one combination.

    Never raises for a missing field; degraded fields are logged and the
    snapshot outcome is DEGRADED.
    """
    price_result = extract_price_text(page, site_config)
    prices_result = prices_from_text(price_result.value, site_config['pricing'])
    image_result = extract_main_image(page, site_config)
    sku = extract_sku(page, site_config, original_url)

    problems = [r.message for r in (price_result, prices_result, image_result) if not r.ok]
    if not combination.settled:
        problems.append("selection did not settle")

    for message in problems:
        logger.warning(f"⚠️ {combination.describe()}: {message}")

    return CombinationSnapshot(
        combination=combination,
        price_text=price_result.value,
        prices=prices_result.value,
        main_image_url=image_result.value,
        sku=sku,
        outcome=Outcome.DEGRADED if problems else Outcome.OK,
    )


def _read_text(page, selector):
    if not selector:
        return ''
    element = page.query_one(selector)
    return page.read_text(element) if element is not None else ''


def extract_title(page, site_config):
    """
    Title as "brand, product name" (either alone when the other is missing),
    falling back to the plain title element
    """
    selectors = site_config['selectors']
    try:
        brand = _read_text(page, selectors.get('brand'))
        product_name = _read_text(page, selectors.get('product_name'))
        title = ', '.join(part for part in (brand, product_name) if part)
        if not title:
            title = _read_text(page, selectors.get('title'))
    except ScraperError as e:
        return StepResult.degraded(('', '', ''), f"Could not extract title: {str(e)}")

    if not title:
        return StepResult.degraded(('', brand, product_name), "Title element is empty")
    return StepResult((title, brand, product_name))


def extract_breadcrumbs(page, site_config):
    """Breadcrumb link texts, without separators and without "Home" """
    selector = site_config['selectors'].get('breadcrumbs')
    if not selector:
        return StepResult([])

    try:
        page.wait_for_selector(selector, site_config['timeouts']['breadcrumbs'])
        links = page.query_all(selector)
        noise = site_config['selectors'].get('breadcrumb_noise')
        crumbs = [clean_breadcrumb_text(page.read_outer_html(link), noise) for link in links]
    except ScraperError as e:
        return StepResult.degraded([], f"Could not extract breadcrumbs: {str(e)}")

    return StepResult([crumb for crumb in crumbs if crumb and crumb.lower() != 'home'])


def _open_description(page, site_config):
    selector = site_config['selectors'].get('description_button')
    if not selector:
        return
    button = page.query_one(selector)
    if button is None or not page.is_visible(button):
        return
    page.scroll_into_view(button)
    try:
        page.click(button, timeout=site_config['timeouts']['click'])
    except ScraperError:
        logger.debug("Standard click on description trigger failed, trying forced click")
        page.click(button, force=True)
    page.pause(site_config['timeouts']['selection_cooldown'])


def _section_html(page, section):
    if isinstance(section, str):
        section = {'selector': section}

    if not section.get('multiple'):
        element = page.query_one(section['selector'])
        return page.read_outer_html(element) if element is not None else ''

    elements = page.query_all(section['selector'])
    if section.get('drop_last'):
        elements = elements[:-1]
    if not elements:
        return ''
    inner = ''.join(page.read_outer_html(element) for element in elements)
    wrap = section.get('wrap')
    return f"<{wrap}>{inner}</{wrap}>" if wrap else inner


def extract_description(page, site_config):
    """Description HTML assembled from the configured sections (main text, feature list, ...)"""
    selectors = site_config['selectors']
    parts = []
    problems = []

    try:
        _open_description(page, site_config)
    except ScraperError as e:
        problems.append(f"description trigger: {str(e)}")

    if selectors.get('description_container'):
        try:
            page.wait_for_selector(selectors['description_container'], site_config['timeouts']['description'])
        except PageTimeout:
            problems.append("description container never became visible")
        except ScraperError as e:
            problems.append(f"description container: {str(e)}")

    for section in selectors.get('description_sections', []):
        try:
            html = _section_html(page, section)
        except ScraperError as e:
            problems.append(f"section {section}: {str(e)}")
            continue
        if html:
            parts.append(html)

    description = sanitize_description_html(''.join(parts))
    if problems and not description:
        return StepResult.degraded('', "; ".join(problems))
    if problems:
        logger.debug(f"Description partially extracted: {'; '.join(problems)}")
    return StepResult(description)


def extract_invariants(page, site_config, url, extra_tags=''):
    """Everything about the product that does not depend on the selected variant"""
    degraded = []

    title_result = extract_title(page, site_config)
    description_result = extract_description(page, site_config)
    breadcrumbs_result = extract_breadcrumbs(page, site_config)
    image_result = extract_main_image(page, site_config)

    for field_name, result in (
        ('title', title_result),
        ('description', description_result),
        ('tags', breadcrumbs_result),
        ('image', image_result),
    ):
        if not result.ok:
            degraded.append(field_name)
            logger.warning(f"⚠️ {result.message}")

    title, brand, product_name = title_result.value

    return ProductInvariants(
        handle=format_handle_from_url(url),
        title=title,
        url=url,
        brand=brand,
        product_name=product_name,
        description_html=description_result.value,
        tags=merge_tags(breadcrumbs_result.value, extra_tags),
        main_image_url=image_result.value,
        degraded_fields=tuple(degraded),
    )
