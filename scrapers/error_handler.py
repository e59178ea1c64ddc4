"""Error classification, recovery strategies and step outcomes for the variant scraper"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from datetime import datetime


class ScraperError(Exception):
    """Base class for errors raised by page interactions"""


class NavigationError(ScraperError):
    """Page could not be loaded after exhausting the retry budget"""


class ElementNotFound(ScraperError):
    """Selector matched nothing"""


class PageTimeout(ScraperError):
    """A bounded wait expired"""


class StaleElement(ScraperError):
    """Element was detached from the document by a re-render"""


class ClickIntercepted(ScraperError):
    """Click landed on another element (overlay, sticky header)"""


class Outcome(Enum):
    """Outcome of a single extraction or interaction step"""
    OK = "ok"
    DEGRADED = "degraded"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    """Value produced by a step plus how the step went"""
    value: Any
    outcome: Outcome = Outcome.OK
    message: str = ''

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def degraded(cls, value: Any, message: str) -> 'StepResult':
        return cls(value=value, outcome=Outcome.DEGRADED, message=message)


class ErrorType(Enum):
    """Classification of different error types"""
    NETWORK = "network"
    TIMEOUT = "timeout"
    NAVIGATION = "navigation"
    STALE_ELEMENT = "stale_element"
    CLICK_INTERCEPTED = "click_intercepted"
    ELEMENT_NOT_FOUND = "element_not_found"
    INVALID_SESSION = "invalid_session"
    PAGE_ERROR = "page_error"
    JAVASCRIPT_ERROR = "javascript_error"
    UNKNOWN = "unknown"


class ErrorHandler:
    """Error handler with classification and recovery strategies"""

    def __init__(self, logger: logging.Logger, circuit_breaker_threshold: int = 20):
        self.logger = logger
        self.error_counts = {error_type: 0 for error_type in ErrorType}
        self.last_error_time = {}
        self.circuit_breaker_threshold = circuit_breaker_threshold
        self.circuit_breaker_reset_time = 300  # seconds

    def reset(self):
        """Forget recorded errors, so one product page cannot trip the breaker for the next"""
        self.error_counts = {error_type: 0 for error_type in ErrorType}
        self.last_error_time = {}

    def classify_error(self, error: Exception) -> ErrorType:
        """Classify error type based on exception type first, message second"""
        if isinstance(error, StaleElement):
            return ErrorType.STALE_ELEMENT
        if isinstance(error, ClickIntercepted):
            return ErrorType.CLICK_INTERCEPTED
        if isinstance(error, ElementNotFound):
            return ErrorType.ELEMENT_NOT_FOUND
        if isinstance(error, PageTimeout):
            return ErrorType.TIMEOUT
        if isinstance(error, NavigationError):
            return ErrorType.NAVIGATION

        error_str = str(error).lower()
        error_type_name = type(error).__name__.lower()

        if 'stale' in error_type_name or 'stale element' in error_str:
            return ErrorType.STALE_ELEMENT
        if 'intercepted' in error_type_name or 'click intercepted' in error_str:
            return ErrorType.CLICK_INTERCEPTED
        if 'timeout' in error_type_name or 'timed out' in error_str or 'timeout' in error_str:
            return ErrorType.TIMEOUT
        if any(keyword in error_str for keyword in ['connection', 'network', 'dns', 'err_']):
            return ErrorType.NETWORK
        if 'invalid session' in error_str or 'session id' in error_str:
            return ErrorType.INVALID_SESSION
        if any(keyword in error_str for keyword in ['no such element', 'element not found', 'unable to locate']):
            return ErrorType.ELEMENT_NOT_FOUND
        if any(keyword in error_str for keyword in ['404', 'page error']):
            return ErrorType.PAGE_ERROR
        if 'javascript' in error_str:
            return ErrorType.JAVASCRIPT_ERROR

        return ErrorType.UNKNOWN

    def get_recovery_strategy(self, error_type: ErrorType, retry_count: int) -> dict:
        """Get recovery strategy based on error type and retry count"""
        strategies = {
            ErrorType.NETWORK: {
                'should_retry': retry_count < 3,
                'wait_time': (2 + retry_count * 2, 4 + retry_count * 3),
                'action': 'wait_and_retry',
            },
            ErrorType.TIMEOUT: {
                'should_retry': retry_count < 3,
                'wait_time': (2 + retry_count, 3 + retry_count * 2),
                'action': 'wait_and_retry',
            },
            ErrorType.NAVIGATION: {
                'should_retry': retry_count < 3,
                'wait_time': (2 + retry_count * 2, 3 + retry_count * 2),
                'action': 'wait_and_retry',
            },
            ErrorType.STALE_ELEMENT: {
                'should_retry': retry_count < 2,
                'wait_time': (0.5, 1),
                'action': 'requery',
            },
            ErrorType.CLICK_INTERCEPTED: {
                'should_retry': retry_count < 1,
                'wait_time': (0.5, 1),
                'action': 'force_click',
            },
            ErrorType.ELEMENT_NOT_FOUND: {
                'should_retry': retry_count < 1,
                'wait_time': (1, 2),
                'action': 'requery',
            },
            ErrorType.INVALID_SESSION: {
                'should_retry': False,
                'wait_time': (0, 0),
                'action': 'stop',
            },
            ErrorType.PAGE_ERROR: {
                'should_retry': False,
                'wait_time': (0, 0),
                'action': 'stop',
            },
            ErrorType.UNKNOWN: {
                'should_retry': retry_count < 2,
                'wait_time': (2, 4),
                'action': 'wait_and_retry',
            },
        }

        return strategies.get(error_type, strategies[ErrorType.UNKNOWN])

    def should_continue(self, error_type: ErrorType) -> bool:
        """Check if we should continue after this error type"""
        if self.error_counts[error_type] >= self.circuit_breaker_threshold:
            last_time = self.last_error_time.get(error_type)
            if last_time:
                time_since = (datetime.now() - last_time).total_seconds()
                if time_since < self.circuit_breaker_reset_time:
                    self.logger.error(f"Circuit breaker triggered for {error_type.value} - too many consecutive errors")
                    return False

        if error_type is ErrorType.INVALID_SESSION:
            return False

        return True

    def record_error(self, error_type: ErrorType):
        """Record error occurrence, resetting the counter once the window has passed"""
        last_time = self.last_error_time.get(error_type)
        if last_time and (datetime.now() - last_time).total_seconds() > self.circuit_breaker_reset_time:
            self.error_counts[error_type] = 0

        self.error_counts[error_type] += 1
        self.last_error_time[error_type] = datetime.now()

    def handle_error(self, error: Exception, retry_count: int, context: Optional[dict] = None) -> dict:
        """Classify, record and pick a recovery strategy for an error"""
        error_type = self.classify_error(error)
        strategy = self.get_recovery_strategy(error_type, retry_count)

        self.record_error(error_type)

        if context:
            self.logger.debug(f"Error context: {context}")

        if not self.should_continue(error_type):
            return {
                'error_type': error_type,
                'should_retry': False,
                'wait_time': (0, 0),
                'action': 'stop',
                'message': f'Circuit breaker triggered for {error_type.value}'
            }

        return {
            'error_type': error_type,
            'should_retry': strategy['should_retry'],
            'wait_time': strategy['wait_time'],
            'action': strategy['action'],
            'message': f"Error type: {error_type.value}, Strategy: {strategy['action']}"
        }
