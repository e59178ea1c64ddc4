"""Drives one variant item into the selected state and waits for the page to settle"""
import logging
from enum import Enum

from scrapers.error_handler import ErrorHandler, PageTimeout, ScraperError, StepResult
from scrapers.product_extractor import read_main_image
from scrapers.variant_discovery import resolve_item


class SelectionStatus(Enum):
    SELECTED = "selected"      # clicked (or already selected) and settled
    UNSETTLED = "unsettled"    # clicked, but no settlement signal before the timeout
    FAILED = "failed"          # item vanished or could not be clicked at all


class SelectionController:
    """
    Selects variant items on a live page.

    Element references are resolved fresh inside every select() call and
    never kept afterwards: the page re-renders after a selection and any
    earlier reference may be detached.
    """

    def __init__(self, page, site_config, logger=None, error_handler=None):
        self.page = page
        self.site_config = site_config
        self.timeouts = site_config['timeouts']
        self.logger = logger or logging.getLogger('selection_controller')
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def select(self, group, item):
        """
        Put item into the selected state.

        Returns:
            StepResult whose value is a SelectionStatus; OK only for SELECTED
        """
        if item.is_selected:
            # No click, but let any residual async UI from the last selection finish
            self.page.pause(self.timeouts['already_selected_pause'])
            return StepResult(SelectionStatus.SELECTED)

        watch_image = group.watch_image and bool(self.site_config['selectors'].get('main_image'))
        image_before = read_main_image(self.page, self.site_config) if watch_image else ''

        if not self._click(group, item):
            return StepResult.degraded(
                SelectionStatus.FAILED,
                f"Could not select {group.name} '{item.label}'",
            )

        settled = True
        if watch_image:
            settled = self._wait_for_image_change(image_before)

        self.page.pause(self.timeouts['selection_cooldown'])

        if not settled:
            return StepResult.degraded(
                SelectionStatus.UNSETTLED,
                f"Image did not change after selecting {group.name} '{item.label}'",
            )
        return StepResult(SelectionStatus.SELECTED)

    def _click(self, group, item):
        """Normal click first; the error handler's recovery action decides the second attempt"""
        context = {'group': group.name, 'item': item.label}
        force = False

        for attempt in range(2):
            # The failed attempt may itself have triggered a re-render
            element = resolve_item(self.page, group.config, item)
            if element is None:
                self.logger.warning(f"⚠️ {group.name} '{item.label}' disappeared before it could be selected")
                return False

            try:
                self.page.scroll_into_view(element)
                if force:
                    self.page.click(element, force=True)
                else:
                    self.page.click(element, timeout=self.timeouts['click'])
                return True
            except ScraperError as e:
                recovery = self.error_handler.handle_error(e, attempt, context=context)
                if attempt > 0 or not recovery['should_retry']:
                    self.logger.warning(f"⚠️ Could not click '{item.label}': {str(e)} ({recovery['message']})")
                    return False

            # A stale handle only needs a fresh lookup; anything else gets a forced click
            force = recovery['action'] != 'requery'
            retry = 'forced click' if force else 'fresh lookup'
            self.logger.warning(f"Standard click failed for '{item.label}' ({recovery['message']}), trying {retry}...")
            self.page.pause(recovery['wait_time'][0])

        return False

    def _wait_for_image_change(self, image_before):
        """Wait (bounded) for the main image to differ from its pre-click value"""
        def _changed():
            current = read_main_image(self.page, self.site_config)
            return bool(current) and current != image_before

        try:
            self.page.wait_for(_changed, self.timeouts['image_change'])
            return True
        except PageTimeout:
            self.logger.warning("⚠️ Image did not change, continuing with the current page state")
            return False
        except ScraperError as e:
            self.logger.warning(f"⚠️ Could not watch main image: {str(e)}")
            return False
