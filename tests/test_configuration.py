#!/usr/bin/env python3
"""
Unit tests for niri-switch configuration and argument parsing
"""

import io
import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import patch

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from niri_switch.config import args_to_config, find_user_stylesheet, log_level, parse_arguments
from niri_switch.constants import CLIENT_REQUEST_CAP, DEFAULT_CONFIG


class TestConfigurationParsing(unittest.TestCase):
    """Test command-line argument parsing"""

    def parse_error(self, argv):
        """Parse arguments expected to be rejected"""
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                parse_arguments(argv)

    def test_default_configuration(self):
        """Test default configuration values"""
        args = parse_arguments([])
        self.assertFalse(args.workspace)
        self.assertFalse(args.no_swap)
        self.assertFalse(args.list)
        self.assertEqual(args.timeout, 2.0)
        self.assertEqual(args.queue_size, CLIENT_REQUEST_CAP)

    def test_workspace_flag(self):
        """Test short and long workspace option"""
        self.assertTrue(parse_arguments(['--workspace']).workspace)
        self.assertTrue(parse_arguments(['-w']).workspace)

    def test_custom_timeout(self):
        """Test IPC timeout option"""
        args = parse_arguments(['--timeout', '0.5'])
        self.assertEqual(args.timeout, 0.5)

    def test_invalid_timeout(self):
        """Test non-positive and oversized timeouts"""
        self.parse_error(['--timeout', '0'])
        self.parse_error(['--timeout', '-1'])
        self.parse_error(['--timeout', '31'])

    def test_invalid_queue_size(self):
        """Test queue size bounds"""
        self.parse_error(['--queue-size', '0'])
        self.parse_error(['--queue-size', '1001'])
        self.assertEqual(parse_arguments(['--queue-size', '1']).queue_size, 1)

    def test_unknown_option(self):
        """Test unknown options are rejected"""
        self.parse_error(['--north'])

    def test_combined_options(self):
        """Test combining multiple options"""
        args = parse_arguments(['-w', '--no-swap', '--timeout', '5', '--queue-size', '50', '--debug'])
        self.assertTrue(args.workspace)
        self.assertTrue(args.no_swap)
        self.assertEqual(args.timeout, 5.0)
        self.assertEqual(args.queue_size, 50)
        self.assertTrue(args.debug)


class TestArgsToConfig(unittest.TestCase):
    """Test conversion of arguments to the config dictionary"""

    def test_defaults_match_constants(self):
        """Test no options gives the default config"""
        self.assertEqual(args_to_config(parse_arguments([])), DEFAULT_CONFIG)

    def test_flags_mapped(self):
        """Test option names map to config keys"""
        config = args_to_config(parse_arguments(['--workspace', '--no-swap', '--timeout', '3']))
        self.assertTrue(config['workspace_only'])
        self.assertFalse(config['swap_first'])
        self.assertEqual(config['ipc_timeout'], 3.0)

    def test_default_config_not_mutated(self):
        """Test building a config leaves the defaults alone"""
        args_to_config(parse_arguments(['--no-swap']))
        self.assertTrue(DEFAULT_CONFIG['swap_first'])

    def test_log_level(self):
        """Test logging level selection"""
        self.assertEqual(log_level(parse_arguments([])), logging.INFO)
        self.assertEqual(log_level(parse_arguments(['--debug'])), logging.DEBUG)
        self.assertEqual(log_level(parse_arguments(['--verbose'])), logging.DEBUG)


class TestUserStylesheet(unittest.TestCase):
    """Test stylesheet lookup"""

    def setUp(self):
        """Create fake XDG and home directories"""
        self.tmpdir = tempfile.mkdtemp(prefix="niri-switch-test-")
        self.xdg = os.path.join(self.tmpdir, "xdg")
        self.home = os.path.join(self.tmpdir, "home")

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def make_stylesheet(self, config_dir):
        directory = os.path.join(config_dir, "niri-switch")
        os.makedirs(directory)
        path = os.path.join(directory, "style.css")
        with open(path, 'w') as f:
            f.write("window { }\n")
        return path

    def test_xdg_config_home_preferred(self):
        """Test $XDG_CONFIG_HOME wins over $HOME/.config"""
        xdg_path = self.make_stylesheet(self.xdg)
        self.make_stylesheet(os.path.join(self.home, ".config"))

        environ = {'XDG_CONFIG_HOME': self.xdg, 'HOME': self.home}
        self.assertEqual(find_user_stylesheet(environ), xdg_path)

    def test_home_fallback(self):
        """Test $HOME/.config used when XDG directory has no stylesheet"""
        home_path = self.make_stylesheet(os.path.join(self.home, ".config"))

        environ = {'XDG_CONFIG_HOME': self.xdg, 'HOME': self.home}
        self.assertEqual(find_user_stylesheet(environ), home_path)

    def test_no_stylesheet(self):
        """Test built-in styles used when nothing is found"""
        self.assertIsNone(find_user_stylesheet({'HOME': self.home}))
        self.assertIsNone(find_user_stylesheet({}))


if __name__ == '__main__':
    unittest.main()
