import unittest
import os
import yaml
import tempfile

from txeffect.annotation.classifier import VariantTypeClassifier
from txeffect.config import AnnotationConfig, load_config
from txeffect.core.errors import ConfigurationError
from txeffect.mapping.mapper import CoordinateMapper


class TestConfig(unittest.TestCase):

    def setUp(self):
        """Set up temporary config files."""
        self.test_dir = tempfile.TemporaryDirectory()
        self.config_dir = self.test_dir.name

        self.valid_config_path = self._write_config("valid_config.yaml", {
            "flank_distance": 500,
            "splice_window": 3,
            "show_all": True,
            "log_level": "debug",
        })
        self.unknown_key_path = self._write_config("unknown.yaml", {"gfa_file": "x.gfa"})
        self.negative_path = self._write_config("negative.yaml", {"splice_window": -1})

    def tearDown(self):
        self.test_dir.cleanup()

    def _write_config(self, filename, data):
        path = os.path.join(self.config_dir, filename)
        with open(path, 'w') as f:
            yaml.dump(data, f)
        return path

    def test_defaults(self):
        config = load_config()
        self.assertEqual(config, AnnotationConfig())
        self.assertEqual(config.flank_distance, 1000)
        self.assertEqual(config.splice_window, 2)
        self.assertFalse(config.show_all)

    def test_load_valid_config_file(self):
        config = load_config(self.valid_config_path)
        self.assertEqual(config.flank_distance, 500)
        self.assertEqual(config.splice_window, 3)
        self.assertTrue(config.show_all)
        self.assertEqual(config.log_level, "DEBUG")

    def test_overrides_win_over_file(self):
        config = load_config(self.valid_config_path, flank_distance=50, splice_window=None)
        self.assertEqual(config.flank_distance, 50)
        self.assertEqual(config.splice_window, 3)  # None means not given

    def test_non_existent_config_file(self):
        with self.assertRaisesRegex(ConfigurationError, "Config file not found"):
            load_config(os.path.join(self.config_dir, "non_existent_config.yaml"))

    def test_unknown_parameter(self):
        with self.assertRaisesRegex(ConfigurationError, "Unknown configuration parameters: gfa_file"):
            load_config(self.unknown_key_path)
        with self.assertRaisesRegex(ConfigurationError, "Unknown configuration parameter"):
            load_config(threads=4)

    def test_invalid_values(self):
        with self.assertRaisesRegex(ConfigurationError, "splice_window must be a non-negative integer"):
            load_config(self.negative_path)
        with self.assertRaisesRegex(ConfigurationError, "Unknown log level"):
            load_config(log_level="LOUD")
        with self.assertRaisesRegex(ConfigurationError, "workers"):
            load_config(workers=0)

    def test_component_defaults_follow_config(self):
        defaults = AnnotationConfig()
        self.assertEqual(CoordinateMapper().flank_distance, defaults.flank_distance)
        self.assertEqual(VariantTypeClassifier().splice_window, defaults.splice_window)

    def test_malformed_yaml(self):
        path = os.path.join(self.config_dir, "broken.yaml")
        with open(path, 'w') as f:
            f.write("flank_distance: [1, 2\n")
        with self.assertRaisesRegex(ConfigurationError, "Error parsing config file"):
            load_config(path)


if __name__ == "__main__":
    unittest.main()
