# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Configurator - Load, reload and wire a ConfigRoot from a config file.

The Configurator is the object an application creates at startup and
passes to the components that need configuration. It remembers where the
configuration came from so that reload() can read it again, and it keeps
the logging module in sync with the 'log' block.

Example:
    >>> configurator = Configurator()
    >>> configurator.configure('/etc/myapp/app.yaml')
    >>> configurator.config.get('db.host')
    'localhost'
    >>> configurator.reload()  # after editing the file
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .config import ConfigRoot
from .exceptions import ConfStoreError
from .loader import load_file, load_resource
from .logsetup import LoggingSubscriber
from .store import AttributeNode

logger = logging.getLogger(__name__)

LOG_PATH = 'log'


class Configurator:
    """Owner of a ConfigRoot and of the source it was loaded from.

    Attributes:
        config: The ConfigRoot being managed.
    """

    def __init__(self, config: ConfigRoot | None = None) -> None:
        self.config = config if config is not None else ConfigRoot()
        self._logging = LoggingSubscriber()
        self._source: Callable[[], AttributeNode] | None = None
        self._source_name: str | None = None

    def __repr__(self) -> str:
        return f"Configurator(source={self._source_name!r})"

    @property
    def source_name(self) -> str | None:
        """Description of the file or resource last configured, if any."""
        return self._source_name

    def configure(self, filename: str | Path, base_dir: str | Path | None = None) -> ConfigRoot:
        """Load a config file and install it as the configuration.

        Args:
            filename: Config file. Relative include lines are resolved
                against its directory (or base_dir).
            base_dir: Optional directory filename is relative to.

        Returns:
            The managed ConfigRoot.
        """
        path = Path(base_dir) / filename if base_dir is not None else Path(filename)
        return self._install(lambda: load_file(path), str(path))

    def configure_from_resource(self, package: str, name: str) -> ConfigRoot:
        """Load a config file shipped inside a package and install it."""
        return self._install(lambda: load_resource(package, name), f"{package}:{name}")

    def _install(self, source: Callable[[], AttributeNode], source_name: str) -> ConfigRoot:
        tree = source()
        self.config.unsubscribe(LOG_PATH, self._logging)
        self.config.load_initial(tree)
        self._source = source
        self._source_name = source_name
        self._configure_logging()
        return self.config

    def _configure_logging(self) -> None:
        try:
            block = self.config.get_subtree(LOG_PATH)
            error = self._logging.validate(None, block)
            if error is not None:
                raise error
            self._logging.commit(None, block)
        except Exception:
            logger.critical("Failed to configure logging", exc_info=True)
            raise
        finally:
            # the installed tree is live, later reloads must still reach logging
            self.config.subscribe(LOG_PATH, self._logging)

    def reload(self) -> None:
        """Read the configured source again and reload the configuration.

        Every subscriber is validated and committed, even if its block did
        not change.

        Raises:
            ConfStoreError: If nothing was configured yet.
            ValidationError: If a subscriber rejected the new configuration.
            ConfigFileError: If the source cannot be read or parsed.
        """
        if self._source is None:
            raise ConfStoreError("reload() called before configure()")
        try:
            self.config.reload(self._source())
        except Exception:
            logger.critical("Failed to reload config from %s", self._source_name, exc_info=True)
            raise

    def configure_logging(self, block: AttributeNode) -> None:
        """Apply a 'log' block once.

        Later changes to block are not picked up.
        """
        self._logging.commit(None, block)
