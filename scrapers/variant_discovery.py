"""Discovery of selectable option groups (Color, Size, ...) on a rendered product page"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from scrapers.error_handler import ScraperError
from scrapers.page_accessor import PageAccessor
from scrapers.site_config import positional_option_name

logger = logging.getLogger('variant_discovery')

# Longer "labels" are descriptive text picked up by a loose selector, not a group heading
MAX_GROUP_LABEL_LENGTH = 40


class ItemState(Enum):
    """Selection state of one swatch/chip; DISABLED wins over SELECTED"""
    SELECTED = "selected"
    AVAILABLE = "available"
    DISABLED = "disabled"


@dataclass(frozen=True)
class VariantItem:
    """
    One selectable value of a group.

    Holds no element reference: label and index are the lookup key used to
    re-resolve the live element from a fresh query before each interaction.
    """
    label: str
    index: int
    state: ItemState = ItemState.AVAILABLE

    @property
    def is_selected(self) -> bool:
        return self.state is ItemState.SELECTED

    @property
    def is_disabled(self) -> bool:
        return self.state is ItemState.DISABLED

    @property
    def key(self) -> str:
        return self.label or f"#{self.index}"


@dataclass
class VariantGroup:
    name: str
    items: List[VariantItem]
    precedence: int
    role: str = ''
    watch_image: bool = False
    config: dict = field(default_factory=dict, repr=False)

    @property
    def live_items(self) -> List[VariantItem]:
        """Items that take part in traversal (disabled ones are out of stock)"""
        return [item for item in self.items if not item.is_disabled]

    def find(self, item: VariantItem) -> Optional[VariantItem]:
        """Counterpart of item in this (fresher) discovery, matched by index then label"""
        if item.index < len(self.items):
            candidate = self.items[item.index]
            if candidate.label == item.label:
                return candidate
        if item.label:
            for candidate in self.items:
                if candidate.label == item.label:
                    return candidate
        return None


def _is_true(value):
    return value is not None and str(value).strip().lower() == 'true'


def _has_boolean_attribute(value):
    """Selenium reports boolean attributes (checked, disabled) as "true" or None"""
    return value is not None and str(value).strip().lower() not in ('false', 'null')


def read_item_state(page: PageAccessor, element: Any, signals: dict) -> ItemState:
    """
    Single predicate for selected/disabled state across site conventions.

    Any one signal is enough: a checked nested input, aria-checked,
    aria-selected or a "selected" class mark the item selected; a disabled
    attribute, aria-disabled, a disabled nested input or a "disabled" class
    mark it disabled. Missing signals mean available.
    """
    try:
        classes = set((page.read_attribute(element, 'class') or '').split())
        control = page.query_one('input', root=element)

        disabled = (
            _has_boolean_attribute(page.read_attribute(element, 'disabled'))
            or _is_true(page.read_attribute(element, 'aria-disabled'))
            or (control is not None and _has_boolean_attribute(page.read_attribute(control, 'disabled')))
            or bool(classes & set(signals.get('disabled_classes', [])))
        )
        if disabled:
            return ItemState.DISABLED

        selected = (
            (control is not None and _has_boolean_attribute(page.read_attribute(control, 'checked')))
            or _is_true(page.read_attribute(element, 'aria-checked'))
            or _is_true(page.read_attribute(element, 'aria-selected'))
            or bool(classes & set(signals.get('selected_classes', [])))
        )
    except ScraperError as e:
        logger.debug(f"Could not read item state, assuming available: {str(e)}")
        return ItemState.AVAILABLE

    return ItemState.SELECTED if selected else ItemState.AVAILABLE


def read_item_label(page: PageAccessor, element: Any, group_config: dict) -> str:
    """Label of a swatch/chip: configured attributes, nested label, image alt, then text"""
    label = ''
    try:
        for attribute in group_config.get('label_attributes', []):
            value = page.read_attribute(element, attribute)
            if value and value.strip():
                label = value.strip()
                break

        if not label and group_config.get('label_selector'):
            nested = page.query_one(group_config['label_selector'], root=element)
            if nested is not None:
                label = page.read_text(nested)

        if not label:
            image = page.query_one('img[alt]', root=element)
            if image is not None:
                label = (page.read_attribute(image, 'alt') or '').strip()

        if not label:
            label = page.read_text(element)
    except ScraperError as e:
        logger.debug(f"Could not read item label: {str(e)}")
        return ''

    pattern = group_config.get('label_prefix_pattern')
    if pattern:
        label = re.sub(pattern, '', label, flags=re.I)

    return re.sub(r'\s+', ' ', label).strip()


def clean_group_label(text):
    """'Color: Black' -> 'Color'; returns '' for text too long to be a heading"""
    if not text:
        return ''
    label = re.sub(r'\s+', ' ', text.split(':')[0]).strip()
    if len(label) > MAX_GROUP_LABEL_LENGTH:
        return ''
    return label


def read_group_name(page: PageAccessor, site_config: dict, group_config: dict, precedence: int) -> str:
    """
    Option name for a group.

    On-page heading text is mapped through the configured option_names
    table (case-insensitive, whole label). Without a heading the configured
    default_name is used, then the positional default.
    """
    label = ''
    if group_config.get('label'):
        try:
            heading = page.query_one(group_config['label'])
            if heading is not None:
                label = clean_group_label(page.read_text(heading))
        except ScraperError as e:
            logger.debug(f"Could not read group label: {str(e)}")

    if label:
        mapped = site_config.get('option_names', {}).get(label.lower())
        return mapped or label

    return group_config.get('default_name') or positional_option_name(precedence)


def read_selected_value(page: PageAccessor, group_config: dict) -> str:
    """Text of the "selected value" display next to a group, if the site has one"""
    selector = group_config.get('selected_value')
    if not selector:
        return ''
    try:
        element = page.query_one(selector)
        return page.read_text(element) if element is not None else ''
    except ScraperError:
        return ''


def discover_group(page: PageAccessor, site_config: dict, group_config: dict, precedence: int) -> Optional[VariantGroup]:
    """
    Fresh discovery of one configured group.

    Returns None when the group is absent from the page or its query fails.
    """
    selector = group_config.get('items')
    if not selector:
        return None

    try:
        elements = page.query_all(selector)
    except ScraperError as e:
        logger.debug(f"Variant query failed for {selector}: {str(e)}")
        return None

    if not elements:
        return None

    signals = site_config.get('state_signals', {})
    items = [
        VariantItem(
            label=read_item_label(page, element, group_config),
            index=index,
            state=read_item_state(page, element, signals),
        )
        for index, element in enumerate(elements)
    ]

    watch_image = group_config.get('watch_image')
    if watch_image is None:
        watch_image = precedence == 0

    return VariantGroup(
        name=read_group_name(page, site_config, group_config, precedence),
        items=items,
        precedence=precedence,
        role=group_config.get('role', ''),
        watch_image=bool(watch_image),
        config=group_config,
    )


def discover_variant_groups(page: PageAccessor, site_config: dict) -> List[VariantGroup]:
    """
    Ordered option groups present on the page.

    Configured order is precedence order; an absent group does not take a
    precedence slot, so a size-only page has Size at precedence 0. An empty
    list is the normal "no variants" case.
    """
    groups = []
    for group_config in site_config.get('variant_groups', []):
        group = discover_group(page, site_config, group_config, precedence=len(groups))
        if group is not None:
            groups.append(group)

    for group in groups:
        disabled = len(group.items) - len(group.live_items)
        logger.debug(f"Group '{group.name}': {len(group.items)} items ({disabled} disabled)")

    return groups


def resolve_item(page: PageAccessor, group_config: dict, item: VariantItem) -> Optional[Any]:
    """
    Live element for item from a fresh query, or None if it vanished.

    The element is only valid until the next page mutation.
    """
    try:
        elements = page.query_all(group_config['items'])
    except ScraperError as e:
        logger.debug(f"Could not re-query items: {str(e)}")
        return None

    if item.index < len(elements):
        candidate = elements[item.index]
        if read_item_label(page, candidate, group_config) == item.label:
            return candidate

    if item.label:
        for element in elements:
            if read_item_label(page, element, group_config) == item.label:
                return element

    return None
