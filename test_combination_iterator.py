"""Tests for walking every variant combination on a live page"""
from unittest import mock

from conftest import FakePage, FakeProduct, PRODUCT_URL, two_color_product
from scrapers import combination_iterator
from scrapers.combination_iterator import Assignment, Combination, iterate_combinations
from scrapers.selection_controller import SelectionController


def _walk(page, site_config):
    controller = SelectionController(page, site_config)
    return list(iterate_combinations(page, site_config, controller))


def _loaded(product, **kwargs):
    page = FakePage(product, **kwargs)
    page.navigate(PRODUCT_URL, 60)
    return page


def test_no_groups_yields_single_empty_combination(site_config):
    combinations = _walk(_loaded(FakeProduct()), site_config)
    assert combinations == [Combination()]
    assert combinations[0].describe() == "(no variants)"


def test_single_group_yields_each_live_item(site_config):
    page = _loaded(FakeProduct(sizes={'S': True, 'M': True, 'L': False}))
    combinations = _walk(page, site_config)

    assert [c.values for c in combinations] == [('S',), ('M',)]
    assert [c.names for c in combinations] == [('Size',), ('Size',)]


def test_secondary_group_rediscovered_for_each_primary(page, site_config):
    combinations = _walk(page, site_config)

    # White 8 is sold out, so it only exists for Black
    assert [c.values for c in combinations] == [('Black', '7'), ('Black', '8'), ('White', '7')]
    assert all(c.settled for c in combinations)
    assert combinations[0].describe() == "Color=Black / Size=7"


def test_consumer_sees_page_in_yielded_state(page, site_config):
    controller = SelectionController(page, site_config)
    seen = []
    for combination in iterate_combinations(page, site_config, controller):
        seen.append((page.product.color_label, page.product.selected_size))
    assert seen == [('Black', '7'), ('Black', '8'), ('White', '7')]


def test_secondary_discovery_runs_after_every_primary_selection(page, site_config):
    size_config = site_config['variant_groups'][1]
    with mock.patch.object(
        combination_iterator, 'discover_group', wraps=combination_iterator.discover_group
    ) as discover:
        _walk(page, site_config)

    # One next-level discovery per selected color, plus one fresh lookup per size selected
    size_discoveries = [call for call in discover.call_args_list if call.args[2] is size_config]
    color_count = 2
    size_selections = 3
    assert len(size_discoveries) == color_count + size_selections


def test_empty_secondary_group_yields_primary_only(site_config):
    product = FakeProduct(colors=[
        {'label': 'Black', 'image': '//img/b.jpg', 'sizes': {'7': True}},
        {'label': 'Gold', 'image': '//img/g.jpg', 'sizes': {'7': False, '8': False}},
    ])
    combinations = _walk(_loaded(product), site_config)
    assert [c.values for c in combinations] == [('Black', '7'), ('Gold',)]


def test_disabled_primary_items_are_skipped(site_config):
    product = FakeProduct(colors=[
        {'label': 'Black', 'image': '//img/b.jpg', 'sizes': {'7': True}},
        {'label': 'Red', 'image': '//img/r.jpg', 'sizes': {'7': True}, 'disabled': True},
        {'label': 'Tan', 'image': '//img/t.jpg', 'sizes': {'9': True}},
    ])
    page = _loaded(product)
    combinations = _walk(page, site_config)

    assert [c.values for c in combinations] == [('Black', '7'), ('Tan', '9')]
    assert page.swatch_clicks('Red') == []


def test_item_vanishing_mid_walk_is_skipped(site_config):
    def drop_size_8(product, role, label):
        if role == 'size' and label == '7' and product.color_label == 'Black':
            product.colors[0]['sizes'].pop('8', None)

    page = _loaded(two_color_product(), after_select=drop_size_8)
    combinations = _walk(page, site_config)

    assert [c.values for c in combinations] == [('Black', '7'), ('White', '7')]


def test_unclickable_item_is_skipped(site_config):
    page = _loaded(two_color_product(), unclickable=['White'])
    combinations = _walk(page, site_config)
    assert [c.values for c in combinations] == [('Black', '7'), ('Black', '8')]


def test_unsettled_selection_still_yielded(site_config):
    page = _loaded(two_color_product(), image_changes=False)
    combinations = _walk(page, site_config)

    assert [c.values for c in combinations] == [('Black', '7'), ('Black', '8'), ('White', '7')]
    # Black was preselected, so only White's selection had to wait for the image
    assert [c.settled for c in combinations] == [True, True, False]


def test_combination_identity_is_value_tuple():
    combination = Combination((Assignment('Color', 'Black'), Assignment('Size', '7')))
    assert combination.values == ('Black', '7')
    assert combination.names == ('Color', 'Size')
    assert combination == Combination((Assignment('Color', 'Black'), Assignment('Size', '7')))


def test_secondary_group_found_after_load_without_it(site_config):
    # Black is preselected and shows no size chips at load
    product = FakeProduct(colors=[
        {'label': 'Black', 'image': '//img/b.jpg', 'sizes': {}},
        {'label': 'White', 'image': '//img/w.jpg', 'sizes': {'7': True, '8': True}},
    ])
    combinations = _walk(_loaded(product), site_config)

    assert [c.values for c in combinations] == [('Black',), ('White', '7'), ('White', '8')]
    assert combinations[1].names == ('Color', 'Size')


def test_every_pair_walked_when_all_enabled(site_config):
    sizes = {'7': True, '8': True, '9': True}
    product = FakeProduct(colors=[
        {'label': 'Black', 'image': '//img/b.jpg', 'sizes': dict(sizes)},
        {'label': 'White', 'image': '//img/w.jpg', 'sizes': dict(sizes)},
    ])
    combinations = _walk(_loaded(product), site_config)

    pairs = [c.values for c in combinations]
    assert len(pairs) == 6
    assert len(set(pairs)) == 6
    assert set(pairs) == {(color, size) for color in ('Black', 'White') for size in ('7', '8', '9')}
