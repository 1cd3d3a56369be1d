#!/usr/bin/env python3
"""
test_config.py
==============
Tests for :class:`config.VanetConfig` environment parsing and validation.
"""

import unittest

from config import DEFAULT_VEHICLES_PER_HOUR, VanetConfig


class VanetConfigTests(unittest.TestCase):
    def test_defaults_without_environment(self):
        cfg = VanetConfig.from_env({})
        self.assertEqual(cfg.vehicles_per_hour, DEFAULT_VEHICLES_PER_HOUR)
        self.assertEqual(cfg.intersection_type, "chaos")
        self.assertIsNone(cfg.log_dir)

    def test_environment_overrides(self):
        cfg = VanetConfig.from_env({
            "VANET_VEHICLES_PER_HOUR": "1200",
            "VANET_INTERSECTION_TYPE": " Platoon ",
            "VANET_PLATOON_SIZE": "-1",
            "VANET_LOG_DIR": "/tmp/vanet",
            "VANET_SCREEN_EXPORT_DIR": "",
            "VANET_SEED": "42",
        })
        self.assertEqual(cfg.vehicles_per_hour, 1200.0)
        self.assertEqual(cfg.intersection_type, "platoon")
        self.assertEqual(cfg.platoon_size, -1)
        self.assertEqual(cfg.log_dir, "/tmp/vanet")
        self.assertIsNone(cfg.screen_export_dir)
        self.assertEqual(cfg.seed, 42)

    def test_unparsable_value_names_the_key(self):
        with self.assertRaises(ValueError) as ctx:
            VanetConfig.from_env({"VANET_PLATOON_SIZE": "three"})
        self.assertIn("VANET_PLATOON_SIZE", str(ctx.exception))

    def test_invalid_values_name_the_key(self):
        with self.assertRaises(ValueError) as ctx:
            VanetConfig(intersection_type="roundabout").validate()
        self.assertIn("intersection_type", str(ctx.exception))
        with self.assertRaises(ValueError):
            VanetConfig(platoon_size=0).validate()
        with self.assertRaises(ValueError):
            VanetConfig(vehicles_per_hour=-1).validate()

    def test_with_overrides_skips_none(self):
        cfg = VanetConfig().with_overrides(seed=None, platoon_size=5)
        self.assertEqual(cfg.seed, 0)
        self.assertEqual(cfg.platoon_size, 5)


if __name__ == "__main__":
    unittest.main()
