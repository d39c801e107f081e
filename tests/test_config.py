from __future__ import annotations

import os
import unittest
from unittest import mock

from tradechart.config import EngineConfig
from tradechart.errors import InvalidParameterError


class EngineConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = EngineConfig()
        self.assertEqual(cfg.element_dimension, 2)
        self.assertEqual(cfg.x_grid_spacing, 64.0)
        self.assertEqual(cfg.y_grid_spacing, 32.0)
        self.assertEqual((cfg.x_alignment, cfg.y_alignment), ("start", "end"))
        self.assertEqual(cfg.value_decimals, 5)

    def test_validation(self) -> None:
        with self.assertRaises(InvalidParameterError):
            EngineConfig(element_dimension=5)
        with self.assertRaises(InvalidParameterError):
            EngineConfig(x_grid_spacing=0.0)
        with self.assertRaises(InvalidParameterError):
            EngineConfig(y_grid_spacing=float("inf"))
        with self.assertRaises(InvalidParameterError):
            EngineConfig(y_alignment="top")  # type: ignore[arg-type]
        with self.assertRaises(InvalidParameterError):
            EngineConfig(value_decimals=-1)

    def test_from_env_reads_overrides(self) -> None:
        env = {
            "TRADECHART_ELEMENT_DIMENSION": "3",
            "TRADECHART_X_GRID_SPACING": "80",
            "TRADECHART_Y_GRID_SPACING": " 40.5 ",
            "TRADECHART_VALUE_DECIMALS": "2",
        }
        with mock.patch.dict(os.environ, env, clear=False):
            cfg = EngineConfig.from_env()
        self.assertEqual(cfg.element_dimension, 3)
        self.assertEqual(cfg.x_grid_spacing, 80.0)
        self.assertEqual(cfg.y_grid_spacing, 40.5)
        self.assertEqual(cfg.value_decimals, 2)

    def test_from_env_blank_uses_defaults(self) -> None:
        with mock.patch.dict(os.environ, {"TRADECHART_ELEMENT_DIMENSION": ""}, clear=False):
            os.environ.pop("TRADECHART_X_GRID_SPACING", None)
            cfg = EngineConfig.from_env()
        self.assertEqual(cfg.element_dimension, 2)
        self.assertEqual(cfg.x_grid_spacing, 64.0)

    def test_from_env_rejects_garbage(self) -> None:
        with mock.patch.dict(os.environ, {"TRADECHART_ELEMENT_DIMENSION": "big"}, clear=False):
            with self.assertRaises(InvalidParameterError):
                EngineConfig.from_env()
        with mock.patch.dict(os.environ, {"TRADECHART_Y_GRID_SPACING": "-4"}, clear=False):
            with self.assertRaises(InvalidParameterError):
                EngineConfig.from_env()

    def test_custom_env_var_names(self) -> None:
        with mock.patch.dict(os.environ, {"MY_DIMENSION": "1"}, clear=False):
            cfg = EngineConfig.from_env(element_dimension_env_var="MY_DIMENSION")
        self.assertEqual(cfg.element_dimension, 1)


if __name__ == "__main__":
    unittest.main()
