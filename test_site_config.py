"""Tests for site configuration loading and merging"""
import json
import os

import pytest

from scrapers.site_config import (
    DEFAULT_SETTINGS,
    build_site_config,
    load_site_configs,
    positional_option_name,
)

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config', 'sites_config.json')


def test_site_entry_merged_over_defaults():
    config = build_site_config({
        'name': 'shop',
        'timeouts': {'click': 3},
        'variant_groups': [{'role': 'size', 'items': '.chips button'}],
    })

    assert config['timeouts']['click'] == 3
    assert config['timeouts']['page_load'] == DEFAULT_SETTINGS['timeouts']['page_load']
    assert config['pricing']['compare_at_mode'] == 'none'

    group = config['variant_groups'][0]
    assert group['items'] == '.chips button'
    assert group['label_attributes'] == ['aria-label', 'title', 'data-value']
    assert group['watch_image'] is None

    # Defaults are not mutated by a merge
    assert DEFAULT_SETTINGS['timeouts']['click'] == 10


def test_invalid_compare_at_mode_rejected():
    with pytest.raises(ValueError):
        build_site_config({'name': 'shop', 'pricing': {'compare_at_mode': 'msrp'}})


def test_load_site_configs(tmp_path):
    path = tmp_path / 'sites.json'
    path.write_text(json.dumps({'sites': [{'name': 'a'}, {'name': 'b', 'vendor': 'B'}]}), encoding='utf-8')

    configs = load_site_configs(str(path))

    assert [config['name'] for config in configs] == ['a', 'b']
    assert configs[1]['vendor'] == 'B'
    assert load_site_configs(str(tmp_path / 'missing.json')) == []


def test_shipped_config_is_valid():
    configs = load_site_configs(CONFIG_PATH)
    macys = next(config for config in configs if config['name'] == 'macys')

    assert macys['vendor'] == "Macy's"
    assert macys['pricing']['compare_at_mode'] == 'displayed'
    assert [group['role'] for group in macys['variant_groups']] == ['color', 'size']


def test_positional_option_names():
    assert positional_option_name(0) == 'Color'
    assert positional_option_name(1) == 'Size'
    assert positional_option_name(2) == 'Option 3'
