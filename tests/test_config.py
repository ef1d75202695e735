"""
Unit tests for gitsvnsync.config module
"""
import json
import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from gitsvnsync.config import (
    SUCCESS,
    apply_env_overrides,
    as_patterns,
    configure_logging,
    get_config_path,
    get_default_config,
    load_config,
    merge_configs,
    save_config,
    validate_preference,
)
from gitsvnsync.exit_codes import CONFIG_ERROR, ConfigError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in [k for k in os.environ if k.startswith('GITSVNSYNC_')]:
            del os.environ[key]
        self.config_dir = Path(self.temp_dir) / '.gitsvnsync'

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        for section in ('sync', 'parallel', 'logging', 'discovery', 'git'):
            self.assertIn(section, config)

        self.assertFalse(config['sync']['sync_all'])
        self.assertTrue(config['sync']['merges_only'])
        self.assertEqual(config['sync']['hub_to_trunk_preference'], 'theirs')
        self.assertEqual(config['sync']['trunk_to_hub_preference'], 'ours')
        self.assertEqual(config['logging']['file'], '~/git_svn_sync.log')
        self.assertEqual(config['parallel']['max_workers'], 0)

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        self.assertEqual(load_config(), get_default_config())
        self.assertEqual(get_config_path(), self.config_dir / 'config.json')

    def test_load_json_config(self):
        """Test a JSON file overrides only the keys it names"""
        self.config_dir.mkdir()
        with open(self.config_dir / 'config.json', 'w') as f:
            json.dump({'sync': {'staging_prefix': 'stage'}}, f)

        config = load_config()

        self.assertEqual(config['sync']['staging_prefix'], 'stage')
        self.assertEqual(config['sync']['trunk_prefix'], 'svn')

    def test_load_yaml_config(self):
        """Test YAML configuration files"""
        self.config_dir.mkdir()
        with open(self.config_dir / 'config.yaml', 'w') as f:
            yaml.safe_dump({'parallel': {'max_workers': 4}}, f)

        self.assertEqual(load_config()['parallel']['max_workers'], 4)

    def test_load_toml_config(self):
        """Test TOML configuration files"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.toml').write_text('[sync]\nsync_all = true\n')

        self.assertTrue(load_config()['sync']['sync_all'])

    def test_broken_config_falls_back_to_defaults(self):
        """Test a malformed file is reported, not fatal"""
        self.config_dir.mkdir()
        (self.config_dir / 'config.json').write_text('{not json')

        self.assertEqual(load_config(), get_default_config())

    def test_config_env_var(self):
        """Test GITSVNSYNC_CONFIG points at an explicit file"""
        path = Path(self.temp_dir) / 'elsewhere.json'
        path.write_text(json.dumps({'sync': {'hub_remote': 'hub'}}))

        with patch.dict(os.environ, {'GITSVNSYNC_CONFIG': str(path)}):
            self.assertEqual(get_config_path(), path)
            self.assertEqual(load_config()['sync']['hub_remote'], 'hub')

    def test_save_config_json_and_yaml(self):
        """Test saving picks the format from the suffix"""
        config = get_default_config()

        json_path = save_config(config, self.config_dir / 'config.json')
        yaml_path = save_config(config, self.config_dir / 'config.yaml')

        with open(json_path) as f:
            self.assertEqual(json.load(f), config)
        with open(yaml_path) as f:
            self.assertEqual(yaml.safe_load(f), config)

    def test_save_config_toml_writes_json(self):
        """Test TOML saves are redirected to JSON"""
        path = save_config(get_default_config(), self.config_dir / 'config.toml')

        self.assertEqual(path.suffix, '.json')
        self.assertTrue(path.exists())


class TestMergeAndOverrides(unittest.TestCase):
    """Test config merging and environment overrides"""

    def test_merge_configs_is_recursive(self):
        base = {'sync': {'a': 1, 'b': 2}, 'other': 1}
        merged = merge_configs(base, {'sync': {'b': 3}})

        self.assertEqual(merged, {'sync': {'a': 1, 'b': 3}, 'other': 1})
        self.assertEqual(base['sync']['b'], 2)

    def test_env_override_bool(self):
        with patch.dict(os.environ, {'GITSVNSYNC_SYNC_MERGES_ONLY': 'false'}):
            config = apply_env_overrides(get_default_config())

        self.assertIs(config['sync']['merges_only'], False)

    def test_env_override_int(self):
        with patch.dict(os.environ, {'GITSVNSYNC_PARALLEL_MAX_WORKERS': '8'}):
            config = apply_env_overrides(get_default_config())

        self.assertEqual(config['parallel']['max_workers'], 8)

    def test_env_override_string(self):
        with patch.dict(os.environ, {'GITSVNSYNC_SYNC_HUB_TO_TRUNK_PREFERENCE': 'ours'}):
            config = apply_env_overrides(get_default_config())

        self.assertEqual(config['sync']['hub_to_trunk_preference'], 'ours')

    def test_unknown_env_key_ignored(self):
        with patch.dict(os.environ, {'GITSVNSYNC_NOPE_KEY': '1'}):
            config = apply_env_overrides(get_default_config())

        self.assertEqual(config, get_default_config())


class TestAsPatterns(unittest.TestCase):
    """Test pattern list settings given as lists or strings"""

    def test_list_kept(self):
        self.assertEqual(as_patterns(['tags/*', '*@*']), ['tags/*', '*@*'])

    def test_string_split_on_commas(self):
        self.assertEqual(as_patterns('node_modules, build-*'), ['node_modules', 'build-*'])
        self.assertEqual(as_patterns('tags/*'), ['tags/*'])

    def test_empty(self):
        self.assertEqual(as_patterns(None), [])
        self.assertEqual(as_patterns(''), [])

    def test_env_override_becomes_list(self):
        with patch.dict(os.environ, {'GITSVNSYNC_DISCOVERY_EXCLUDE_PATTERNS': 'vendor'}):
            config = apply_env_overrides(get_default_config())

        self.assertEqual(as_patterns(config['discovery']['exclude_patterns']), ['vendor'])


class TestValidatePreference(unittest.TestCase):

    def test_valid(self):
        self.assertEqual(validate_preference('ours', 'x'), 'ours')
        self.assertEqual(validate_preference('theirs', 'x'), 'theirs')

    def test_invalid(self):
        with self.assertRaises(ConfigError) as ctx:
            validate_preference('patience', 'sync.trunk_to_hub_preference')

        self.assertEqual(ctx.exception.exit_code, CONFIG_ERROR)
        self.assertIn('sync.trunk_to_hub_preference', str(ctx.exception))


class TestConfigureLogging(unittest.TestCase):
    """Test the log file and level setup"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        logger = logging.getLogger("gitsvnsync")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        shutil.rmtree(self.temp_dir)

    def test_file_format(self):
        log_file = Path(self.temp_dir) / 'logs' / 'sync.log'
        logger = configure_logging(str(log_file))

        logger.log(SUCCESS, "Successfully pushed main to origin.")
        logging.getLogger("gitsvnsync.services.sync_service").debug("hidden")
        for handler in logger.handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        self.assertEqual(len(lines), 1)
        self.assertRegex(
            lines[0],
            r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[SUCCESS\] Successfully pushed main to origin\.$",
        )

    def test_debug_level(self):
        logger = configure_logging(None, debug=True)

        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)

    def test_reconfigure_does_not_duplicate_handlers(self):
        log_file = str(Path(self.temp_dir) / 'sync.log')
        configure_logging(log_file)
        logger = configure_logging(log_file)

        self.assertEqual(len(logger.handlers), 2)


if __name__ == '__main__':
    unittest.main()
