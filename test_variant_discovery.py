"""Tests for variant group discovery and the item state predicate"""
from conftest import FakeElement, FakePage, FakeProduct, PRODUCT_URL
from scrapers.variant_discovery import (
    ItemState,
    clean_group_label,
    discover_variant_groups,
    read_item_state,
    resolve_item,
)

SIGNALS = {
    'selected_classes': ['selected', 'active'],
    'disabled_classes': ['disabled', 'unavailable'],
}


def _state(page, **kwargs):
    return read_item_state(page, FakeElement(**kwargs), SIGNALS)


def test_item_state_signals(page):
    assert _state(page) is ItemState.AVAILABLE
    assert _state(page, attributes={'aria-checked': 'true'}) is ItemState.SELECTED
    assert _state(page, attributes={'aria-selected': 'true'}) is ItemState.SELECTED
    assert _state(page, attributes={'class': 'chip active'}) is ItemState.SELECTED
    assert _state(page, attributes={'aria-checked': 'false'}) is ItemState.AVAILABLE
    assert _state(page, attributes={'disabled': 'true'}) is ItemState.DISABLED
    assert _state(page, attributes={'aria-disabled': 'true'}) is ItemState.DISABLED
    assert _state(page, attributes={'class': 'chip unavailable'}) is ItemState.DISABLED

    checked = FakeElement(attributes={'checked': 'true'})
    assert _state(page, nested={'input': [checked]}) is ItemState.SELECTED
    disabled_input = FakeElement(attributes={'disabled': 'true'})
    assert _state(page, nested={'input': [disabled_input]}) is ItemState.DISABLED


def test_disabled_wins_over_selected(page):
    state = _state(page, attributes={'aria-checked': 'true', 'class': 'selected unavailable'})
    assert state is ItemState.DISABLED


def test_stale_element_reads_as_available(page):
    element = FakeElement(attributes={'aria-checked': 'true'})
    element.stale = True
    assert read_item_state(page, element, SIGNALS) is ItemState.AVAILABLE


def test_clean_group_label():
    assert clean_group_label("Color: Black") == "Color"
    assert clean_group_label("  Size ") == "Size"
    assert clean_group_label("x" * 60) == ""
    assert clean_group_label("") == ""


def test_discovers_color_and_size_groups(page, site_config):
    groups = discover_variant_groups(page, site_config)

    assert [group.name for group in groups] == ['Color', 'Size']
    assert [group.precedence for group in groups] == [0, 1]

    colors, sizes = groups
    assert [item.label for item in colors.items] == ['Black', 'White']
    assert colors.items[0].is_selected
    assert colors.watch_image is True
    assert sizes.watch_image is False
    assert [item.label for item in sizes.items] == ['7', '8']


def test_disabled_items_reported_but_not_live(site_config):
    product = FakeProduct(colors=[
        {'label': 'Black', 'image': '//img/b.jpg', 'sizes': {'7': True}},
        {'label': 'Red', 'image': '//img/r.jpg', 'sizes': {'7': True}, 'disabled': True},
    ])
    page = FakePage(product)
    page.navigate(PRODUCT_URL, 60)

    colors = discover_variant_groups(page, site_config)[0]
    assert len(colors.items) == 2
    assert [item.label for item in colors.live_items] == ['Black']
    assert colors.items[1].state is ItemState.DISABLED


def test_no_variant_groups(site_config):
    page = FakePage(FakeProduct())
    page.navigate(PRODUCT_URL, 60)
    assert discover_variant_groups(page, site_config) == []


def test_size_only_page_takes_first_precedence(site_config):
    page = FakePage(FakeProduct(sizes={'S': True, 'M': True, 'L': False}))
    page.navigate(PRODUCT_URL, 60)

    groups = discover_variant_groups(page, site_config)
    assert len(groups) == 1
    assert groups[0].name == 'Size'
    assert groups[0].precedence == 0
    assert [item.label for item in groups[0].live_items] == ['S', 'M']


def test_group_name_falls_back_when_label_missing(page, site_config):
    site_config['variant_groups'][1]['label'] = '.no-such-legend'
    site_config['variant_groups'][1]['default_name'] = 'Shoe Size'
    groups = discover_variant_groups(page, site_config)
    assert groups[1].name == 'Shoe Size'

    site_config['variant_groups'][1]['default_name'] = ''
    groups = discover_variant_groups(page, site_config)
    assert groups[1].name == 'Size'


def test_resolve_item_after_rerender(page, site_config):
    colors = discover_variant_groups(page, site_config)[0]
    white = colors.items[1]

    stale = resolve_item(page, colors.config, white)
    page.render()
    fresh = resolve_item(page, colors.config, white)

    assert stale.stale
    assert fresh is not stale
    assert fresh.name == 'White'


def test_resolve_item_vanished(page, site_config):
    colors = discover_variant_groups(page, site_config)[0]
    white = colors.items[1]
    del page.product.colors[1]
    page.render()
    assert resolve_item(page, colors.config, white) is None
