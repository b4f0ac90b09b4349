"""
Unit tests for pluginsync.config module
"""
import unittest
import tempfile
import os
import shutil
import json
from pathlib import Path
from unittest.mock import patch

from pluginsync.config import (
    apply_env_overrides,
    get_default_config,
    load_config,
    load_config_defaults,
    merge_configs,
    save_config,
)
from pluginsync.exit_codes import ConfigurationError


class TestConfigManagement(unittest.TestCase):
    """Test configuration management functionality"""

    def setUp(self):
        """Set up test environment"""
        self.temp_dir = tempfile.mkdtemp()
        self.env = patch.dict(os.environ, {'HOME': self.temp_dir}, clear=False)
        self.env.start()
        for key in list(os.environ):
            if key.startswith('PLUGINSYNC_'):
                del os.environ[key]

    def tearDown(self):
        """Clean up test environment"""
        self.env.stop()
        shutil.rmtree(self.temp_dir)

    def write_config(self, filename, content):
        config_dir = Path(self.temp_dir) / '.pluginsync'
        config_dir.mkdir(exist_ok=True)
        path = config_dir / filename
        path.write_text(content)
        return path

    def test_get_default_config(self):
        """Test default configuration structure"""
        config = get_default_config()

        self.assertEqual(config['organization'], 'intelsdi-x')
        self.assertIn('token', config['github'])
        self.assertEqual(config['plugins']['protected_branch'], 'master')
        self.assertEqual(config['plugins']['badge_exempt'], ['Mesos'])
        self.assertIn('{build}', config['plugins']['artifact_url_template'])
        self.assertIn('level', config['logging'])

    def test_load_config_no_file(self):
        """Test loading config when no file exists"""
        config = load_config()
        self.assertEqual(config, get_default_config())

    def test_load_config_json_file(self):
        """Test loading config from JSON file"""
        self.write_config('config.json', json.dumps({
            'organization': 'example-org',
            'github': {'timeout_seconds': 5},
        }))

        config = load_config()

        self.assertEqual(config['organization'], 'example-org')
        self.assertEqual(config['github']['timeout_seconds'], 5)
        # Untouched nested keys survive the merge
        self.assertEqual(config['github']['api_url'], 'https://api.github.com')

    def test_load_config_yaml_file(self):
        """Test loading config from YAML file"""
        self.write_config('config.yaml', "plugins:\n  tool_name: docsync\n  badge_exempt: []\n")

        config = load_config()

        self.assertEqual(config['plugins']['tool_name'], 'docsync')
        self.assertEqual(config['plugins']['badge_exempt'], [])

    def test_load_config_toml_file(self):
        """Test loading config from TOML file"""
        self.write_config('config.toml', '[logging]\nlevel = "DEBUG"\n')
        self.assertEqual(load_config()['logging']['level'], 'DEBUG')

    def test_load_config_invalid_json(self):
        """Invalid files are logged and defaults are used"""
        self.write_config('config.json', '{"organization": ')
        with self.assertLogs('pluginsync', level='ERROR'):
            config = load_config()
        self.assertEqual(config['organization'], 'intelsdi-x')

    def test_config_env_path(self):
        """PLUGINSYNC_CONFIG points at an explicit file"""
        path = Path(self.temp_dir) / 'custom.json'
        path.write_text(json.dumps({'organization': 'elsewhere'}))
        with patch.dict(os.environ, {'PLUGINSYNC_CONFIG': str(path)}):
            self.assertEqual(load_config()['organization'], 'elsewhere')

    def test_save_config_round_trip(self):
        """Saved configuration loads back"""
        config = get_default_config()
        config['organization'] = 'saved-org'
        save_config(config)
        self.assertTrue((Path(self.temp_dir) / '.pluginsync' / 'config.json').exists())
        self.assertEqual(load_config()['organization'], 'saved-org')


class TestEnvOverrides(unittest.TestCase):
    """Environment variable overrides"""

    def test_nested_override(self):
        with patch.dict(os.environ, {'PLUGINSYNC_GITHUB_TIMEOUT_SECONDS': '90'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['github']['timeout_seconds'], 90)

    def test_token_override(self):
        with patch.dict(os.environ, {'PLUGINSYNC_GITHUB_TOKEN': 'abc'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['github']['token'], 'abc')

    def test_top_level_override(self):
        with patch.dict(os.environ, {'PLUGINSYNC_ORGANIZATION': 'other-org'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config['organization'], 'other-org')

    def test_unknown_key_ignored(self):
        with patch.dict(os.environ, {'PLUGINSYNC_NOT_A_KEY': 'x'}):
            config = apply_env_overrides(get_default_config())
        self.assertEqual(config, get_default_config())


class TestConfigDefaults(unittest.TestCase):
    """Organization defaults document"""

    def test_merge_configs_is_deep(self):
        merged = merge_configs({'a': {'x': 1, 'y': 2}}, {'a': {'y': 9, 'z': 3}})
        self.assertEqual(merged, {'a': {'x': 1, 'y': 9, 'z': 3}})

    def test_packaged_defaults(self):
        defaults = load_config_defaults()
        self.assertIsInstance(defaults['global']['build']['matrix'], list)

    def test_configured_defaults(self):
        with tempfile.NamedTemporaryFile('w', suffix='.yml', delete=False) as f:
            f.write("global:\n  build:\n    matrix: []\n")
        try:
            defaults = load_config_defaults({'plugins': {'config_defaults': f.name}})
            self.assertEqual(defaults, {'global': {'build': {'matrix': []}}})
        finally:
            os.unlink(f.name)

    def test_malformed_defaults(self):
        with tempfile.NamedTemporaryFile('w', suffix='.yml', delete=False) as f:
            f.write("global: [oops\n")
        try:
            with self.assertRaises(ConfigurationError):
                load_config_defaults({'plugins': {'config_defaults': f.name}})
        finally:
            os.unlink(f.name)


if __name__ == '__main__':
    unittest.main()
