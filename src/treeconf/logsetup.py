# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""LoggingSubscriber - Configure the logging module from a 'log' block.

Block keys:
    - level: level name ('debug', 'info', ...) or number
    - node: logger name; '' (the root logger) for the top block, the block
      key for nested blocks
    - console: 'true' to log to stderr
    - filename: log file to append to
    - format: logging format string ('%' style)
    - use_parents: 'false' to stop propagation to parent loggers

Every nested block configures one more logger. Nested blocks cannot
nest further.

Example:
    log:
      level: info
      console: true
      db:
        node: myapp.db
        level: debug
        filename: /var/log/myapp/db.log
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from .exceptions import ConfStoreError, ValidationError
from .store import AttributeNode

DEFAULT_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

_KNOWN_KEYS = frozenset(('level', 'node', 'console', 'filename', 'format', 'use_parents'))


class _LoggerSettings:
    """Settings for one logger, parsed from one block."""

    __slots__ = ('name', 'level', 'console', 'filename', 'format', 'propagate')

    def __init__(self, block: AttributeNode, default_name: str) -> None:
        for key in block.keys():
            if key not in _KNOWN_KEYS and block.get_subtree(key) is None:
                raise ValueError(f"unknown logging option {key!r}")

        self.name = block.get('node', default_name)
        self.level = _parse_level(block.get('level'))
        self.console = block.get_bool('console', False)
        self.filename = block.get('filename')
        self.format = block.get('format', DEFAULT_FORMAT)
        self.propagate = block.get_bool('use_parents', True)

        # validate=True rejects malformed format strings
        logging.Formatter(self.format, validate=True)
        if self.filename is not None and not Path(self.filename).parent.is_dir():
            raise ValueError(f"log directory does not exist for {self.filename!r}")


def _parse_level(value: str | None) -> int | None:
    if value is None:
        return None
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown logging level {value!r}")
    return level


def parse_log_block(block: AttributeNode) -> list[_LoggerSettings]:
    """Parse a 'log' block into logger settings, top block first.

    Raises:
        ValueError: On unknown options, levels or format strings.
        ConfStoreError: On values that are not valid booleans.
    """
    parsed = [_LoggerSettings(block, '')]
    for key in block.keys():
        nested = block.get_subtree(key)
        if nested is None:
            continue
        for inner in nested.keys():
            if nested.get_subtree(inner) is not None:
                raise ValueError(f"logging block {key!r} cannot contain block {inner!r}")
        parsed.append(_LoggerSettings(nested, key))
    return parsed


class LoggingSubscriber:
    """Subscriber that keeps the logging module in sync with a 'log' block.

    Handlers installed by a previous commit are removed and closed before
    the new settings are applied.
    """

    def __init__(self) -> None:
        self._installed: list[tuple[logging.Logger, logging.Handler]] = []
        self._touched: list[logging.Logger] = []

    def validate(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> ValidationError | None:
        if replacement is None:
            return None
        try:
            parse_log_block(replacement)
        except (ValueError, ConfStoreError) as e:
            return ValidationError(str(e))
        return None

    def commit(
        self,
        current: AttributeNode | None,
        replacement: AttributeNode | None,
    ) -> None:
        self.reset()
        if replacement is not None:
            for settings in parse_log_block(replacement):
                self._apply(settings)

        root = logging.getLogger()
        if root.level == logging.NOTSET:
            root.setLevel(logging.INFO)

    def reset(self) -> None:
        """Undo everything a previous commit installed."""
        for log, handler in self._installed:
            log.removeHandler(handler)
            handler.close()
        for log in self._touched:
            log.setLevel(logging.NOTSET)
            log.propagate = True
        self._installed = []
        self._touched = []

    def _apply(self, settings: _LoggerSettings) -> None:
        log = logging.getLogger(settings.name or None)
        self._touched.append(log)
        if settings.level is not None:
            log.setLevel(settings.level)
        log.propagate = settings.propagate

        formatter = logging.Formatter(settings.format)
        handlers: list[logging.Handler] = []
        if settings.console:
            handlers.append(logging.StreamHandler(sys.stderr))
        if settings.filename is not None:
            handlers.append(logging.FileHandler(settings.filename, encoding='utf-8'))
        for handler in handlers:
            handler.setFormatter(formatter)
            log.addHandler(handler)
            self._installed.append((log, handler))
