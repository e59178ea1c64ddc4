"""Walks every combination of live variant items in precedence order"""
import logging
from dataclasses import dataclass
from typing import Iterator, Tuple

from scrapers.selection_controller import SelectionStatus
from scrapers.variant_discovery import discover_group, discover_variant_groups, read_selected_value

module_logger = logging.getLogger('combination_iterator')


@dataclass(frozen=True)
class Assignment:
    group: str
    value: str


@dataclass(frozen=True)
class Combination:
    """One value per traversed group; identity is the tuple of values"""
    assignments: Tuple[Assignment, ...] = ()
    settled: bool = True

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(assignment.value for assignment in self.assignments)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(assignment.group for assignment in self.assignments)

    def describe(self) -> str:
        if not self.assignments:
            return "(no variants)"
        return ' / '.join(f"{a.group}={a.value}" for a in self.assignments)


def iterate_combinations(page, site_config, controller, logger=None, groups=None) -> Iterator[Combination]:
    """
    Lazily select and yield every combination.

    Each combination is yielded while the page shows it, so the consumer
    extracts before advancing the generator. The generator cannot be
    restarted: it drives the live page.

    - no groups: a single empty combination
    - one group: each live item in turn
    - more groups: after every selection each configured lower group is
      looked up again, whether or not it was on the page at load, since its
      items may depend on the selection; when none has live items the
      partial combination is yielded on its own

    groups: the groups discovered at load, when the caller already has them
    """
    logger = logger or module_logger

    if groups is None:
        groups = discover_variant_groups(page, site_config)
    if not groups:
        logger.info("No variants found")
        yield Combination()
        return

    summary = ', '.join(f"{g.name} ({len(g.live_items)}/{len(g.items)} available)" for g in groups)
    logger.info(f"Found variant groups: {summary}")

    configs = site_config.get('variant_groups', [])
    start = next(index for index, config in enumerate(configs) if config is groups[0].config)
    yield from _walk(page, site_config, controller, groups[0], configs[start + 1:], (), True, logger)


def _next_group(page, site_config, lower_configs, precedence, value, logger):
    """First lower group with live items, and the configs below it"""
    for offset, config in enumerate(lower_configs):
        group = discover_group(page, site_config, config, precedence)
        if group is not None and group.live_items:
            return group, lower_configs[offset + 1:]
        logger.info(f"No available {config.get('role') or 'options'} for '{value}'")
    return None, []


def _walk(page, site_config, controller, group, lower_configs, assigned, settled, logger):
    planned = list(group.live_items)
    seen = set()

    for position, planned_item in enumerate(planned, 1):
        if planned_item.key in seen:
            continue

        # Re-discover before every selection: states changed and earlier lookups are stale
        fresh_group = discover_group(page, site_config, group.config, group.precedence)
        item = fresh_group.find(planned_item) if fresh_group else None
        if item is None:
            logger.warning(f"⚠️ {group.name} '{planned_item.label}' no longer on the page, skipping")
            continue
        if item.is_disabled:
            logger.warning(f"⚠️ {group.name} '{item.label}' became unavailable, skipping")
            continue

        logger.info(f"Selecting {group.name.lower()} {position}/{len(planned)}: {item.label or item.key}")
        result = controller.select(fresh_group, item)
        if result.value is SelectionStatus.FAILED:
            logger.warning(f"⚠️ {result.message}, skipping")
            continue

        seen.add(planned_item.key)
        value = item.label or read_selected_value(page, group.config)
        combination_settled = settled and result.value is SelectionStatus.SELECTED
        current = assigned + (Assignment(fresh_group.name, value),)

        next_group, remaining = _next_group(page, site_config, lower_configs, len(current), value, logger)
        if next_group is None:
            yield Combination(current, combination_settled)
            continue

        logger.info(f"Found {len(next_group.live_items)} {next_group.name.lower()} values for '{value}'")
        yield from _walk(page, site_config, controller, next_group, remaining, current, combination_settled, logger)
