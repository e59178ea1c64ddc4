"""Shared fixtures: an in-memory product page that re-renders like a real one"""
import copy

import pytest

from scrapers.error_handler import ClickIntercepted, ElementNotFound, PageTimeout, StaleElement
from scrapers.page_accessor import PageAccessor
from scrapers.site_config import build_site_config

PRODUCT_URL = 'https://www.example.com/shop/product/carrson-dress-sandals?ID=6313227'

TEST_SITE = {
    'name': 'testshop',
    'vendor': 'Test Vendor',
    'product_type': 'Footwear',
    'domains': ['example.com'],
    'selectors': {
        'identity': 'h1.product-title',
        'title': 'h1.product-title',
        'brand': 'h1.product-title a',
        'product_name': 'h1.product-title span',
        'cost_price': '.price-box .cost',
        'current_price': '.price-box .sale',
        'main_image': '.main-image img',
        'description_button': '.details button.toggle',
        'description_container': '.details',
        'description_sections': [
            '.details p.value',
            {'selector': '.details ul li', 'multiple': True, 'drop_last': True, 'wrap': 'ul'},
        ],
        'breadcrumbs': '.breadcrumbs a',
    },
    'variant_groups': [
        {
            'role': 'color',
            'items': '.colors label',
            'label': '.colors legend',
            'label_attributes': ['aria-label'],
            'label_prefix_pattern': r'^Color:\s*',
            'selected_value': '.colors .selected-name',
        },
        {
            'role': 'size',
            'items': '.sizes label',
            'label': '.sizes legend',
            'label_attributes': [],
            'label_selector': 'span',
            'watch_image': False,
        },
    ],
    'pricing': {
        'variant_price_multiplier': '1.3',
        'compare_at_mode': 'displayed',
    },
}


class FakeElement:
    """Element handle; goes stale when the page re-renders"""

    def __init__(self, name='', text='', attributes=None, nested=None, outer_html='', visible=True, on_click=None):
        self.name = name
        self.text = text
        self.attributes = attributes or {}
        self.nested = nested or {}
        self.outer_html = outer_html
        self.visible = visible
        self.on_click = on_click
        self.stale = False


class FakeProduct:
    """
    Product state behind the fake page.

    colors: list of {'label', 'image', 'sizes': {size label: available}, 'disabled'}
    sizes: size availability for products without a color group
    """

    def __init__(self, colors=None, sizes=None, brand='Steve Madden', name='Carrson Sandals',
                 prices=None, default_price='$129.99', selected_color=0,
                 default_image='//img.example.com/default.jpg',
                 breadcrumbs=('Home', 'Women', 'Shoes')):
        self.colors = copy.deepcopy(colors) or []
        self.sizes = dict(sizes or {})
        self.brand = brand
        self.name = name
        self.prices = prices or {}
        self.default_price = default_price
        self.selected_color = selected_color if self.colors else None
        self.selected_size = None
        self.default_image = default_image
        self.breadcrumbs = list(breadcrumbs)

    @property
    def color_label(self):
        if self.selected_color is None:
            return ''
        return self.colors[self.selected_color]['label']

    def current_sizes(self):
        if self.colors:
            if self.selected_color is None:
                return {}
            return self.colors[self.selected_color]['sizes']
        return self.sizes

    def current_image(self):
        if self.selected_color is None:
            return self.default_image
        return self.colors[self.selected_color]['image']

    def current_price(self):
        for key in ((self.color_label, self.selected_size), self.color_label):
            if key in self.prices:
                return self.prices[key]
        return self.default_price


def two_color_product(**kwargs):
    """Black (7, 8) and White (7, 8 sold out); Black is preselected"""
    colors = [
        {'label': 'Black', 'image': '//img.example.com/black.jpg', 'sizes': {'7': True, '8': True}},
        {'label': 'White', 'image': '//img.example.com/white.jpg', 'sizes': {'7': True, '8': False}},
    ]
    return FakeProduct(colors=colors, **kwargs)


class FakePage(PageAccessor):
    """
    PageAccessor over a FakeProduct.

    Every selection re-renders the page: all earlier elements go stale and
    the size chips are rebuilt for the selected color.
    """

    def __init__(self, product=None, url=PRODUCT_URL, failing_navigations=0, intercepted_clicks=0,
                 unclickable=(), image_changes=True, title_present=True, after_select=None,
                 stale_clicks=0, price_region='.price-box .cost', lazy_image=False):
        self.product = product if product is not None else two_color_product()
        self.url = url
        self.failing_navigations = failing_navigations
        self.intercepted_clicks = intercepted_clicks
        self.unclickable = set(unclickable)
        self.image_changes = image_changes
        self.title_present = title_present
        self.after_select = after_select
        self.stale_clicks = stale_clicks
        self.price_region = price_region
        self.lazy_image = lazy_image

        self.navigations = []
        self.clicks = []
        self.pauses = []
        self.renders = 0
        self._current_url = ''
        self._elements = {}
        self._rendered = []
        self.render()

    # model -> elements

    def _element(self, **kwargs):
        element = FakeElement(**kwargs)
        self._rendered.append(element)
        return element

    def render(self):
        for element in self._rendered:
            element.stale = True
        self._rendered = []
        self.renders += 1

        product = self.product
        elements = {}

        if self.title_present:
            elements['h1.product-title'] = [self._element(text=f"{product.brand} {product.name}")]
            elements['h1.product-title a'] = [self._element(text=product.brand)]
            elements['h1.product-title span'] = [self._element(text=product.name)]

        price = product.current_price()
        elements[self.price_region] = [self._element(text=price, attributes={'aria-label': price})]

        image = product.current_image() if self.image_changes else product.default_image
        if self.lazy_image:
            # Real image deferred behind a placeholder
            img = self._element(attributes={'src': '//img.example.com/placeholder.gif', 'data-src': image})
        else:
            img = self._element(attributes={'src': image})
        elements['.main-image img'] = [img]

        elements['.breadcrumbs a'] = [
            self._element(
                text=crumb,
                outer_html=f'<a href="#">{crumb}<svg class="separator-icon"><path></path></svg></a>',
            )
            for crumb in product.breadcrumbs
        ]

        elements['.details button.toggle'] = [self._element(name='details', text='Details')]
        elements['.details'] = [self._element(text='Details')]
        elements['.details p.value'] = [
            self._element(outer_html='<p class="value">Soft leather upper.<script>track()</script></p>')
        ]
        elements['.details ul li'] = [
            self._element(outer_html='<li>Open toe</li>'),
            self._element(outer_html='<li>Buckle closure</li>'),
            self._element(outer_html='<li>Web ID: 6313227</li>'),
        ]

        if product.colors:
            elements['.colors legend'] = [self._element(text=f"Color: {product.color_label}")]
            elements['.colors .selected-name'] = [self._element(text=product.color_label)]
            elements['.colors label'] = [
                self._color_swatch(index, color) for index, color in enumerate(product.colors)
            ]

        sizes = product.current_sizes()
        if sizes:
            elements['.sizes legend'] = [self._element(text='Size')]
            elements['.sizes label'] = [
                self._size_chip(label, available) for label, available in sizes.items()
            ]

        self._elements = elements

    def _color_swatch(self, index, color):
        control = self._element(attributes={
            'checked': 'true' if index == self.product.selected_color else None,
            'disabled': 'true' if color.get('disabled') else None,
        })
        return self._element(
            name=color['label'],
            attributes={'aria-label': f"Color: {color['label']}", 'class': 'swatch'},
            nested={'input': [control]},
            on_click=lambda: self._select('color', index, color['label']),
        )

    def _size_chip(self, label, available):
        control = self._element(attributes={'checked': 'true' if label == self.product.selected_size else None})
        return self._element(
            name=label,
            text=label,
            attributes={'class': 'chip' if available else 'chip unavailable'},
            nested={'span': [self._element(text=label)], 'input': [control]},
            on_click=lambda: self._select('size', label, label),
        )

    def _select(self, role, key, label):
        if role == 'color':
            self.product.selected_color = key
            self.product.selected_size = None
        else:
            self.product.selected_size = key
        if self.after_select:
            self.after_select(self.product, role, label)
        self.render()

    def _check(self, element):
        if element.stale:
            raise StaleElement("element is stale")

    # PageAccessor

    def navigate(self, url, timeout):
        self.navigations.append(url)
        if self.failing_navigations > 0:
            self.failing_navigations -= 1
            raise PageTimeout(f"navigate {url}: timed out")
        self._current_url = url
        self.render()

    def query_one(self, selector, root=None):
        elements = self.query_all(selector, root)
        return elements[0] if elements else None

    def query_all(self, selector, root=None):
        if root is not None:
            self._check(root)
            return list(root.nested.get(selector, []))
        return list(self._elements.get(selector, []))

    def read_text(self, element):
        self._check(element)
        return element.text.strip()

    def read_attribute(self, element, name):
        self._check(element)
        return element.attributes.get(name)

    def read_outer_html(self, element):
        self._check(element)
        return element.outer_html or f"<div>{element.text}</div>"

    def is_visible(self, element):
        return not element.stale and element.visible

    def scroll_into_view(self, element):
        self._check(element)

    def click(self, element, timeout=10, force=False):
        self._check(element)
        if element.name in self.unclickable:
            self.clicks.append((element.name, 'blocked'))
            raise ClickIntercepted(f"click on {element.name} intercepted")
        if not force and self.stale_clicks > 0:
            # The click lands while the page re-renders
            self.stale_clicks -= 1
            self.clicks.append((element.name, 'stale'))
            self.render()
            raise StaleElement(f"{element.name} detached during click")
        if not force and self.intercepted_clicks > 0:
            self.intercepted_clicks -= 1
            self.clicks.append((element.name, 'intercepted'))
            raise ClickIntercepted(f"click on {element.name} intercepted")
        self.clicks.append((element.name, 'forced' if force else 'normal'))
        if element.on_click:
            element.on_click()

    def wait_for(self, predicate, timeout, poll_interval=0.25):
        try:
            result = predicate()
        except (StaleElement, ElementNotFound):
            result = False
        if not result:
            raise PageTimeout(f"condition not met within {timeout}s")
        return result

    def wait_for_network_settled(self, timeout):
        pass

    def current_url(self):
        return self._current_url

    def pause(self, seconds):
        self.pauses.append(seconds)

    def swatch_clicks(self, *names):
        """Clicks on the named swatches/chips, in order"""
        return [click for click in self.clicks if not names or click[0] in names]


@pytest.fixture
def site_config():
    return build_site_config(TEST_SITE)


@pytest.fixture
def page():
    fake = FakePage()
    fake.navigate(PRODUCT_URL, 60)
    return fake


@pytest.fixture
def in_tmp_dir(tmp_path, monkeypatch):
    """Run in an empty directory so logs/ and data/ are written there"""
    monkeypatch.chdir(tmp_path)
    return tmp_path
