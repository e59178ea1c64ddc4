"""Per-site selector table and engine settings"""
import copy
import json
import logging
import os

from utils.pricing import COMPARE_AT_MODES

logger = logging.getLogger('site_config')

DEFAULT_CONFIG_PATH = os.path.join('config', 'sites_config.json')

# Positional fallbacks for option names, by precedence
DEFAULT_OPTION_NAMES = ['Color', 'Size']

DEFAULT_SETTINGS = {
    'name': 'generic',
    'vendor': '',
    'product_type': '',
    # Hosts served by this entry; used to route a product URL to its site
    'domains': [],
    'selectors': {
        'identity': 'h1',
        'title': 'h1',
        'brand': '',
        'product_name': '',
        'cost_price': '',
        'current_price': '',
        'main_image': '',
        'description_button': '',
        'description_container': '',
        'description_sections': [],
        'breadcrumbs': '',
        'breadcrumb_noise': 'svg, .separator-icon',
    },
    'variant_groups': [],
    'state_signals': {
        'selected_classes': ['selected', 'is-selected', 'active'],
        'disabled_classes': ['disabled', 'is-disabled', 'unavailable', 'out-of-stock', 'sold-out'],
    },
    # Lower-cased on-page group label -> option name written to the output
    'option_names': {
        'color': 'Color',
        'colour': 'Color',
        'size': 'Size',
    },
    'pricing': {
        'variant_price_multiplier': '1.3',
        # none | multiplier | displayed
        'compare_at_mode': 'none',
        'compare_at_multiplier': '1.2',
    },
    'timeouts': {
        'page_load': 60,
        'identity': 15,
        'settle_after_load': 3,
        'network_settled': 10,
        'price': 10,
        'image': 5,
        'breadcrumbs': 15,
        'description': 5,
        'click': 10,
        'image_change': 10,
        'selection_cooldown': 1.0,
        'already_selected_pause': 0.5,
    },
    'navigation': {
        'max_retries': 3,
        'retry_backoff': 2,
    },
    'image_lazy_attributes': ['data-src', 'data-lazy-src', 'data-original'],
    'sku': {
        'query_param': 'ID',
        'path_pattern': r'-(\d+)\.html',
    },
    'row_defaults': {
        'Published': 'TRUE',
        'Variant Taxable': 'TRUE',
        'Gift Card': 'FALSE',
        'Variant Weight Unit': 'oz',
        'Variant Fulfillment Service': 'manual',
        'Variant Inventory Policy': 'deny',
        'Variant Inventory Tracker': 'shopify',
    },
}

GROUP_DEFAULTS = {
    'role': '',
    'items': '',
    'label': '',
    'default_name': '',
    'label_attributes': ['aria-label', 'title', 'data-value'],
    'label_selector': '',
    'label_prefix_pattern': '',
    'selected_value': '',
    # None means "watch the image only for the primary group"
    'watch_image': None,
}


def merge_settings(defaults, overrides):
    """Recursively merge overrides into a copy of defaults (dicts only, lists replace)"""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def build_site_config(site_entry):
    """
    Merge one site entry from the JSON file over the defaults

    Args:
        site_entry: Dictionary as found under "sites" in sites_config.json

    Returns:
        dict: Complete site configuration
    """
    config = merge_settings(DEFAULT_SETTINGS, site_entry)
    config['variant_groups'] = [
        merge_settings(GROUP_DEFAULTS, group) for group in site_entry.get('variant_groups', [])
    ]

    mode = config['pricing'].get('compare_at_mode')
    if mode not in COMPARE_AT_MODES:
        raise ValueError(f"Site '{config['name']}': compare_at_mode must be one of {COMPARE_AT_MODES}, got {mode!r}")

    return config


def load_site_configs(path=DEFAULT_CONFIG_PATH):
    """Load and complete every site configuration in the JSON file"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading site configs from {path}: {str(e)}")
        return []

    return [build_site_config(site) for site in data.get('sites', [])]


def positional_option_name(precedence):
    if precedence < len(DEFAULT_OPTION_NAMES):
        return DEFAULT_OPTION_NAMES[precedence]
    return f"Option {precedence + 1}"
