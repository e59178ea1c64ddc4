"""Text, URL and HTML helpers shared by the extractors"""
import re
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup

# Tags that carry no catalog content in a description
DESCRIPTION_NOISE_TAGS = ['script', 'noscript', 'style', 'svg', 'button', 'iframe', 'template']


def format_handle_from_url(url):
    """
    Catalog handle from a product URL path

    '/shop/product/bow-sandals.html?ID=1' -> 'shop-product-bow-sandals'
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return ''

    path = path.strip('/')
    path = re.sub(r'\.(html|jsp)$', '', path)
    handle = re.sub(r'[^a-zA-Z0-9]+', '-', path).lower()
    return handle.strip('-')


def extract_sku_from_url(url, query_param='ID', path_pattern=r'-(\d+)\.html'):
    """
    Product id from the query string (case-insensitive parameter name), else from the path

    Returns:
        str: SKU or '' when the URL carries none
    """
    if not url:
        return ''

    try:
        parsed = urlparse(url)
    except ValueError:
        return ''

    if query_param:
        for key, values in parse_qs(parsed.query).items():
            if key.lower() == query_param.lower() and values and values[0].strip():
                return values[0].strip()

    if path_pattern:
        match = re.search(path_pattern, parsed.path, re.I)
        if match:
            return match.group(1)

    return ''


def normalize_image_url(url, page_url=''):
    """Absolute image URL: protocol-relative and root-relative paths are resolved"""
    if not url:
        return ''
    url = url.strip()
    if url.startswith('//'):
        return f"https:{url}"
    if page_url and not re.match(r'^[a-z][a-z0-9+.-]*:', url, re.I):
        return urljoin(page_url, url)
    return url


def split_tags(tags):
    """Tags from a comma separated string or an iterable"""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')
    return [tag.strip() for tag in tags if tag and tag.strip()]


def merge_tags(*tag_sources):
    """Merge tag lists/strings, dropping duplicates (case-insensitive) and keeping order"""
    merged = []
    seen = set()
    for source in tag_sources:
        for tag in split_tags(source):
            if tag.lower() not in seen:
                seen.add(tag.lower())
                merged.append(tag)
    return ', '.join(merged)


def clean_breadcrumb_text(html, noise_selector='svg, .separator-icon'):
    """Visible text of one breadcrumb link with separator icons removed"""
    if not html:
        return ''
    soup = BeautifulSoup(html, 'lxml')
    if noise_selector:
        for element in soup.select(noise_selector):
            element.decompose()
    return re.sub(r'\s+', ' ', soup.get_text(' ', strip=True)).strip()


def sanitize_description_html(html):
    """Description fragment without scripts, icons and buttons"""
    if not html:
        return ''

    soup = BeautifulSoup(html, 'lxml')
    for tag in soup.find_all(DESCRIPTION_NOISE_TAGS):
        tag.decompose()

    cleaned = soup.body.decode_contents() if soup.body else ''
    return re.sub(r'>\s+<', '><', cleaned).strip()
