"""
Per-resolution processing context.

Holds the key/value parameters that tag functions read and write, the
ordered error log of one resolution, the dry-run flag and a set of
categorized diagnostic messages. A context is owned by exactly one
resolution at a time and is passed explicitly through the evaluator.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

MESSAGE_CATEGORIES = ('debug', 'info', 'warning', 'error', 'error_abort')


class ProcessingContext:
    """Key/value store, error log and dry-run flag for one resolution."""

    def __init__(
        self,
        seed: Optional[Mapping[str, Any]] = None,
        dry_run: bool = False,
        debug: bool = False,
    ):
        self._params: Dict[str, str] = {}
        self._errors: List[str] = []
        self._messages: Dict[str, List[str]] = {category: [] for category in MESSAGE_CATEGORIES}
        self.dry_run = dry_run
        self.debug = debug
        if seed:
            self.initialize(seed)

    # Parameters

    def initialize(self, seed: Optional[Mapping[str, Any]] = None):
        """Replace all parameters with a copy of ``seed``."""
        self._params = {}
        for key, value in (seed or {}).items():
            self._params[str(key)] = '' if value is None else str(value)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._params.get(key, default)

    def set(self, key: str, value: Any):
        self._params[key] = '' if value is None else str(value)

    def clear(self):
        self._params = {}

    def current(self) -> Dict[str, str]:
        """Snapshot of the parameters."""
        return dict(self._params)

    def copy(self) -> 'ProcessingContext':
        """Independent context with the same parameters and flags, but an empty log."""
        return ProcessingContext(self._params, dry_run=self.dry_run, debug=self.debug)

    # Error log

    def report_error(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Append ``message`` to the error log without aborting."""
        if details:
            logger.error(f"{message} | {details}")
        else:
            logger.error(message)
        self.add_error(message)

    def add_error(self, message: str):
        self._errors.append(message)
        self.add_message('error', message)

    def reset_errors(self):
        self._errors = []

    def has_errors(self) -> bool:
        return bool(self._errors)

    def errors(self) -> List[str]:
        return list(self._errors)

    def errors_text(self) -> str:
        return '\n'.join(self._errors)

    # Categorized messages

    def add_message(self, category: str, message: str):
        if category not in self._messages:
            raise ValueError(f"Unknown message category: {category}")
        if category == 'debug' and not self.debug:
            return
        self._messages[category].append(message)

    def messages(self, category: str) -> List[str]:
        if category not in self._messages:
            raise ValueError(f"Unknown message category: {category}")
        return list(self._messages[category])

    def retrieve_messages(
        self,
        category: str,
        previous: str = '',
        delimiter: str = '\n',
        max_length: Optional[int] = None,
    ) -> str:
        """
        Join ``previous`` and the collected messages of ``category``.

        Args:
            category: One of MESSAGE_CATEGORIES
            previous: Text placed before the collected messages
            delimiter: Separator between entries
            max_length: Truncate the result to this many characters

        Returns:
            The joined text
        """
        parts = [previous] if previous else []
        parts.extend(self.messages(category))
        text = delimiter.join(parts)
        if max_length is not None:
            text = text[:max_length]
        return text

    def __repr__(self):
        return (
            f"ProcessingContext(params={self._params!r}, errors={len(self._errors)}, "
            f"dry_run={self.dry_run})"
        )
