# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Loaders for building an AttributeNode tree from config files.

Supported formats:
- YAML (.yaml, .yml), read with yaml.safe_load
- JSON (.json)

Scalars become strings ('true'/'false' for booleans, '' for null), lists
of scalars become string lists, mappings become nested nodes. A key named
'include' pulls other files into the block that contains it; the block's
own keys override what was included. Include names are resolved against
the directory of the file that names them. A local plain value cannot
replace a block that an include created; that raises ConfigFileError.

Example:
    >>> tree = load_file('conf/app.yaml')
    >>> tree.get('db.host')
    'localhost'

    # conf/app.yaml
    include: common.yaml
    db:
      host: localhost
"""

from __future__ import annotations

import json
import posixpath
from datetime import date
from importlib import resources
from pathlib import Path
from typing import Any, Callable

import yaml

from .exceptions import ConfigFileError, ConfStoreError
from .store import AttributeNode

INCLUDE_KEY = 'include'

_FORMATS = {
    '.yaml': 'yaml',
    '.yml': 'yaml',
    '.json': 'json',
}

# opener(name, including) resolves name against the location of the file
# that includes it (None for the top level) and returns (location, text)
Opener = Callable[[str, str | None], tuple[str, str]]


def _parse_text(text: str, fmt: str, source: str) -> dict[str, Any]:
    try:
        if fmt == 'yaml':
            data = yaml.safe_load(text)
        elif fmt == 'json':
            data = json.loads(text) if text.strip() else None
        else:
            raise ConfigFileError(f"Unsupported config format {fmt!r} for {source}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigFileError(f"Cannot parse {source}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Config root in {source} must be a mapping, not {type(data).__name__}"
        )
    return data


def _format_for(name: str) -> str:
    suffix = Path(name).suffix.lower()
    fmt = _FORMATS.get(suffix)
    if fmt is None:
        raise ConfigFileError(f"Unsupported config file type {suffix!r}: {name}")
    return fmt


def _scalar(value: Any, where: str) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigFileError(f"Unsupported value at {where!r}: {type(value).__name__}")


class _TreeBuilder:
    """Fill an AttributeNode from parsed data, following include directives."""

    def __init__(self, opener: Opener) -> None:
        self._opener = opener
        self._stack: list[str] = []

    def load(self, target: AttributeNode, name: str) -> None:
        including = self._stack[-1] if self._stack else None
        location, text = self._opener(name, including)
        if location in self._stack:
            chain = ' -> '.join(self._stack + [location])
            raise ConfigFileError(f"Include cycle: {chain}")
        self._stack.append(location)
        try:
            self.fill(target, _parse_text(text, _format_for(location), location))
        finally:
            self._stack.pop()

    def fill(self, target: AttributeNode, data: dict[str, Any]) -> None:
        includes = data.get(INCLUDE_KEY)
        if includes is not None:
            if isinstance(includes, str):
                includes = [includes]
            if not isinstance(includes, list) or not all(isinstance(i, str) for i in includes):
                raise ConfigFileError("'include' must be a file name or a list of file names")
            for name in includes:
                self.load(target, name)

        for key, value in data.items():
            if key == INCLUDE_KEY:
                continue
            key = str(key)
            where = f"{target.name}.{key}" if target.name else key
            try:
                if isinstance(value, dict):
                    self.fill(target.ensure_subtree(key), value)
                elif isinstance(value, list):
                    if any(isinstance(item, (dict, list)) for item in value):
                        raise ConfigFileError(f"Nested structures are not allowed in list {where!r}")
                    target.set(key, [_scalar(item, where) for item in value])
                else:
                    target.set(key, _scalar(value, where))
            except ConfigFileError:
                raise
            except ConfStoreError as e:
                raise ConfigFileError(f"Invalid entry {where!r}: {e}") from e


def _file_opener(base_dir: Path) -> Opener:
    def opener(name: str, including: str | None) -> tuple[str, str]:
        path = Path(name)
        if not path.is_absolute():
            path = (Path(including).parent if including else base_dir) / path
        path = path.resolve()
        try:
            return str(path), path.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise ConfigFileError(f"Config file not found: {path}") from None
        except OSError as e:
            raise ConfigFileError(f"Cannot read config file {path}: {e}") from e
    return opener


def load_file(filename: str | Path, base_dir: str | Path | None = None) -> AttributeNode:
    """Load a config file into a new AttributeNode.

    Args:
        filename: Path to the file. Relative paths are resolved against
            base_dir when given.
        base_dir: Directory used to resolve filename. Include lines are
            resolved against the directory of the file that contains them.

    Returns:
        A detached root AttributeNode.

    Raises:
        ConfigFileError: If the file is missing, unreadable, of an
            unsupported type or malformed.
    """
    path = Path(filename)
    if base_dir is not None:
        path = Path(base_dir) / path
    tree = AttributeNode()
    _TreeBuilder(_file_opener(Path('.'))).load(tree, str(path))
    return tree


def load_string(
    text: str, fmt: str = 'yaml', base_dir: str | Path | None = None
) -> AttributeNode:
    """Load config text into a new AttributeNode.

    Args:
        text: YAML or JSON source.
        fmt: 'yaml' or 'json'.
        base_dir: Directory for include lines. Defaults to the current
            directory.
    """
    builder = _TreeBuilder(_file_opener(Path(base_dir) if base_dir is not None else Path('.')))
    tree = AttributeNode()
    builder.fill(tree, _parse_text(text, fmt, '<string>'))
    return tree


def load_resource(package: str, name: str) -> AttributeNode:
    """Load a config file shipped as a package resource.

    Include lines name resources of the same package, relative to the
    resource that contains them.

    Args:
        package: Dotted package name, e.g. 'myapp.conf'.
        name: Resource file name inside the package.
    """
    def opener(resource: str, including: str | None) -> tuple[str, str]:
        if including is not None:
            resource = posixpath.normpath(
                posixpath.join(posixpath.dirname(including.partition(':')[2]), resource)
            )
        entry = resources.files(package).joinpath(resource)
        try:
            return f"{package}:{resource}", entry.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise ConfigFileError(f"Config resource not found: {package}:{resource}") from None

    tree = AttributeNode()
    _TreeBuilder(opener).load(tree, name)
    return tree
