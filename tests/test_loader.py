# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for the YAML/JSON loaders."""

import logging
import sys

import pytest

from treeconf import (
    AttributeNode,
    ConfigFileError,
    Configurator,
    load_file,
    load_resource,
    load_string,
)


def _write(directory, name, text):
    path = directory / name
    path.write_text(text, encoding='utf-8')
    return path


class TestLoadString:
    """Tests for load_string conversions."""

    def test_scalars_become_strings(self):
        """Test YAML scalars are stored as strings."""
        tree = load_string(
            "name: app\n"
            "port: 8080\n"
            "ratio: 0.5\n"
            "debug: true\n"
            "quiet: false\n"
            "nothing:\n"
        )
        assert tree.get('name') == 'app'
        assert tree.get('port') == '8080'
        assert tree.get('ratio') == '0.5'
        assert tree.get('debug') == 'true'
        assert tree.get('quiet') == 'false'
        assert tree.get('nothing') == ''
        assert tree.get('released') == '2024-01-01'
        assert tree.get('built') == '2024-01-01T12:30:00'

    def test_lists_and_mappings(self):
        """Test lists become string lists and mappings become subtrees."""
        tree = load_string(
            "db:\n"
            "  host: localhost\n"
            "  replicas: [r1, r2, 3]\n"
        )
        assert tree.get('db.host') == 'localhost'
        assert tree.get_string_list('db.replicas') == ['r1', 'r2', '3']
        assert tree.get_subtree('db').name == 'db'

    def test_dotted_keys(self):
        """Test dotted keys are compound keys."""
        tree = load_string("db.host: h\ndb:\n  port: 1\n")
        assert tree == AttributeNode({'db': {'host': 'h', 'port': '1'}})

    def test_json(self):
        """Test JSON text."""
        tree = load_string('{"a": {"b": ["x", "y"]}, "c": 1}', fmt='json')
        assert tree.get_string_list('a.b') == ['x', 'y']
        assert tree.get('c') == '1'

    def test_empty_text(self):
        """Test empty text gives an empty tree."""
        assert len(load_string('')) == 0
        assert len(load_string('', fmt='json')) == 0

    def test_non_mapping_root(self):
        """Test a list at the root is rejected."""
        with pytest.raises(ConfigFileError, match='mapping'):
            load_string('- a\n- b\n')

    def test_nested_list_rejected(self):
        """Test lists of mappings are rejected."""
        with pytest.raises(ConfigFileError, match='Nested structures'):
            load_string('items:\n  - name: a\n')

    def test_malformed_yaml(self):
        """Test YAML syntax errors are reported as ConfigFileError."""
        with pytest.raises(ConfigFileError, match='Cannot parse'):
            load_string('a: [unclosed\n')

    def test_malformed_json(self):
        """Test JSON syntax errors are reported as ConfigFileError."""
        with pytest.raises(ConfigFileError):
            load_string('{"a":', fmt='json')

    def test_unknown_format(self):
        """Test an unknown format name is rejected."""
        with pytest.raises(ConfigFileError, match='Unsupported'):
            load_string('a: b', fmt='toml')

    def test_type_conflict_reported(self):
        """Test mixing a value and a subtree on one key is a ConfigFileError."""
        with pytest.raises(ConfigFileError, match="'a'"):
            load_string("a.b: x\na: y\n")


class TestLoadFile:
    """Tests for load_file and include directives."""

    def test_load_yaml_file(self, tmp_path):
        """Test loading a YAML file from disk."""
        path = _write(tmp_path, 'app.yaml', "db:\n  host: localhost\n")
        assert load_file(path).get('db.host') == 'localhost'

    def test_load_with_base_dir(self, tmp_path):
        """Test a file name relative to base_dir."""
        _write(tmp_path, 'app.yml', "k: v\n")
        assert load_file('app.yml', base_dir=tmp_path).get('k') == 'v'

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigFileError."""
        with pytest.raises(ConfigFileError, match='not found'):
            load_file(tmp_path / 'missing.yaml')

    def test_unsupported_suffix(self, tmp_path):
        """Test unknown extensions are rejected."""
        path = _write(tmp_path, 'app.ini', "[a]\n")
        with pytest.raises(ConfigFileError, match='Unsupported'):
            load_file(path)

    def test_include_merges_and_overrides(self, tmp_path):
        """Test included keys are loaded first and local keys override them."""
        _write(tmp_path, 'common.yaml', "db:\n  host: common\n  port: 5432\nname: common\n")
        path = _write(
            tmp_path, 'app.yaml',
            "include: common.yaml\n"
            "name: app\n"
            "db:\n"
            "  host: local\n",
        )
        tree = load_file(path)
        assert tree.get('name') == 'app'
        assert tree.get('db.host') == 'local'
        assert tree.get('db.port') == '5432'
        assert not tree.contains('include')

    def test_include_inside_block(self, tmp_path):
        """Test an include inside a block loads into that block."""
        _write(tmp_path, 'log.json', '{"level": "debug"}')
        path = _write(tmp_path, 'app.yaml', "log:\n  include: [log.json]\n  console: true\n")
        tree = load_file(path)
        assert tree.get('log.level') == 'debug'
        assert tree.get('log.console') == 'true'
        assert tree.get_subtree('log').name == 'log'

    def test_include_relative_to_including_file(self, tmp_path):
        """Test nested includes resolve against the directory of their file."""
        sub = tmp_path / 'sub'
        sub.mkdir()
        _write(sub, 'a.yaml', "include: b.yaml\nname: a\n")
        _write(sub, 'b.yaml', "x: 1\nname: b\n")
        _write(tmp_path, 'b.yaml', "x: wrong\n")
        path = _write(tmp_path, 'app.yaml', "include: sub/a.yaml\n")
        tree = load_file(path)
        assert tree.get('x') == '1'
        assert tree.get('name') == 'a'

    def test_include_same_name_in_other_directory(self, tmp_path):
        """Test files with one name in two directories are not a cycle."""
        sub = tmp_path / 'sub'
        sub.mkdir()
        _write(sub, 'app.yaml', "inner: yes\n")
        path = _write(tmp_path, 'app.yaml', "include: sub/app.yaml\nouter: yes\n")
        tree = load_file(path)
        assert tree.get('inner') == 'true'
        assert tree.get('outer') == 'true'

    def test_local_value_cannot_replace_included_block(self, tmp_path):
        """Test a local plain value over an included block is an error."""
        _write(tmp_path, 'common.yaml', "db:\n  host: h\n")
        path = _write(tmp_path, 'app.yaml', "include: common.yaml\ndb: none\n")
        with pytest.raises(ConfigFileError, match="'db'"):
            load_file(path)

    def test_include_cycle(self, tmp_path):
        """Test include cycles are detected."""
        _write(tmp_path, 'a.yaml', "include: b.yaml\n")
        _write(tmp_path, 'b.yaml', "include: a.yaml\n")
        with pytest.raises(ConfigFileError, match='Include cycle'):
            load_file(tmp_path / 'a.yaml')

    def test_include_missing(self, tmp_path):
        """Test a missing include raises ConfigFileError."""
        path = _write(tmp_path, 'app.yaml', "include: nope.yaml\n")
        with pytest.raises(ConfigFileError, match='not found'):
            load_file(path)

    def test_include_must_be_names(self, tmp_path):
        """Test an include value must be a file name or list of names."""
        path = _write(tmp_path, 'app.yaml', "include:\n  a: b\n")
        with pytest.raises(ConfigFileError, match="'include'"):
            load_file(path)


class TestLoadResource:
    """Tests for load_resource."""

    @pytest.fixture
    def package(self, tmp_path, monkeypatch):
        pkg = tmp_path / 'treeconf_test_resources'
        pkg.mkdir()
        _write(pkg, '__init__.py', '')
        _write(pkg, 'common.yaml', "db:\n  host: common\n  port: 5432\n")
        _write(pkg, 'app.yaml', "include: common.yaml\ndb:\n  host: packaged\n")
        (pkg / 'nested').mkdir()
        _write(pkg / 'nested', 'top.yaml', "include: part.yaml\n")
        _write(pkg / 'nested', 'part.yaml', "part: nested\n")
        monkeypatch.syspath_prepend(str(tmp_path))
        monkeypatch.delitem(sys.modules, 'treeconf_test_resources', raising=False)
        return 'treeconf_test_resources'

    def test_load_resource_with_include(self, package):
        """Test resources and their includes are read from the package."""
        tree = load_resource(package, 'app.yaml')
        assert tree.get('db.host') == 'packaged'
        assert tree.get('db.port') == '5432'

    def test_resource_include_relative(self, package):
        """Test includes inside a resource subdirectory resolve next to it."""
        assert load_resource(package, 'nested/top.yaml').get('part') == 'nested'

    def test_missing_resource(self, package):
        """Test a missing resource raises ConfigFileError."""
        with pytest.raises(ConfigFileError, match='not found'):
            load_resource(package, 'nope.yaml')

    def test_configurator_from_resource(self, package):
        """Test Configurator.configure_from_resource."""
        configurator = Configurator()
        saved_level = logging.getLogger().level
        try:
            configurator.configure_from_resource(package, 'app.yaml')
            assert configurator.config.get('db.host') == 'packaged'
            assert configurator.source_name == f'{package}:app.yaml'
            configurator.reload()
        finally:
            configurator._logging.reset()
            logging.getLogger().setLevel(saved_level)
