import unittest

from strategy_spec_schema import assert_valid_strategy_spec, load_strategy_spec, validate_strategy_spec


def build_valid_spec():
    return {
        "name": "Unit_RSI",
        "asset": "XAUUSD",
        "timeframe": "PERIOD_H1",
        "buyConditions": [
            {
                "id": "rsi_buy",
                "name": "RSI",
                "period": 14,
                "shift": 0,
                "condition": "LESS",
                "value": 30,
            },
            {
                "id": "ma_buy",
                "name": "Moving Average",
                "period": 50,
                "shift": 1,
                "method": "MODE_EMA",
                "appliedTo": "PRICE_CLOSE",
                "condition": "CROSS_UP",
                "value": 200,
            },
        ],
        "sellConditions": [
            {
                "id": "rsi_sell",
                "name": "RSI",
                "period": 14,
                "shift": 0,
                "condition": "GREATER",
                "value": 70,
            }
        ],
        "risk": {
            "lotSize": 0.1,
            "stopLossPoints": 500,
            "takeProfitPoints": 1000,
            "trailingStopPoints": 0,
            "useCompoundInterest": False,
            "riskPercent": 1.0,
            "managementType": "FIXED",
        },
    }


class StrategySpecSchemaTests(unittest.TestCase):
    def test_valid_spec_passes(self):
        valid, errors = validate_strategy_spec(build_valid_spec())
        self.assertTrue(valid)
        self.assertEqual(errors, [])

    def test_non_object_fails(self):
        valid, errors = validate_strategy_spec(["not", "a", "spec"])
        self.assertFalse(valid)
        self.assertEqual(errors[0]["path"], "root")

    def test_unsupported_asset_and_timeframe_fail(self):
        spec = build_valid_spec()
        spec["asset"] = "DOGEUSD"
        spec["timeframe"] = "PERIOD_W1"

        valid, errors = validate_strategy_spec(spec)
        paths = {error["path"] for error in errors}
        self.assertFalse(valid)
        self.assertIn("asset", paths)
        self.assertIn("timeframe", paths)

    def test_empty_condition_lists_are_valid(self):
        spec = build_valid_spec()
        spec["buyConditions"] = []
        spec["sellConditions"] = []
        valid, errors = validate_strategy_spec(spec)
        self.assertTrue(valid, msg=errors)

    def test_zero_period_fails(self):
        spec = build_valid_spec()
        spec["buyConditions"][0]["period"] = 0
        valid, errors = validate_strategy_spec(spec)
        self.assertFalse(valid)
        self.assertTrue(any(e["path"] == "buyConditions[0].period" for e in errors))

    def test_negative_value_is_allowed(self):
        spec = build_valid_spec()
        spec["buyConditions"][0]["name"] = "CCI"
        spec["buyConditions"][0]["value"] = -100
        valid, errors = validate_strategy_spec(spec)
        self.assertTrue(valid, msg=errors)

    def test_unknown_operator_fails(self):
        spec = build_valid_spec()
        spec["sellConditions"][0]["condition"] = "EQUALS"
        valid, errors = validate_strategy_spec(spec)
        self.assertFalse(valid)
        self.assertTrue(any(e["path"] == "sellConditions[0].condition" for e in errors))

    def test_duplicate_condition_ids_fail(self):
        spec = build_valid_spec()
        spec["buyConditions"][1]["id"] = "rsi_buy"
        valid, errors = validate_strategy_spec(spec)
        self.assertFalse(valid)
        self.assertTrue(any(e["path"] == "buyConditions[1].id" for e in errors))

    def test_same_id_on_both_sides_is_allowed(self):
        spec = build_valid_spec()
        spec["sellConditions"][0]["id"] = "rsi_buy"
        valid, errors = validate_strategy_spec(spec)
        self.assertTrue(valid, msg=errors)

    def test_martingale_requires_positive_multiplier(self):
        spec = build_valid_spec()
        spec["risk"]["managementType"] = "MARTINGALE"
        valid, errors = validate_strategy_spec(spec)
        self.assertFalse(valid)
        self.assertTrue(any(e["path"] == "risk.multiplier" for e in errors))

        spec["risk"]["multiplier"] = 1.5
        valid, errors = validate_strategy_spec(spec)
        self.assertTrue(valid, msg=errors)

    def test_inactive_mode_fields_are_ignored(self):
        spec = build_valid_spec()
        spec["risk"]["multiplier"] = -3
        spec["risk"]["gridStep"] = "wide"
        valid, errors = validate_strategy_spec(spec)
        self.assertTrue(valid, msg=errors)

    def test_negative_points_fail(self):
        spec = build_valid_spec()
        spec["risk"]["stopLossPoints"] = -1
        valid, errors = validate_strategy_spec(spec)
        self.assertFalse(valid)
        self.assertTrue(any(e["path"] == "risk.stopLossPoints" for e in errors))

    def test_assert_valid_strategy_spec_raises(self):
        spec = build_valid_spec()
        spec["name"] = ""
        with self.assertRaises(ValueError):
            assert_valid_strategy_spec(spec)

    def test_load_strategy_spec_builds_model(self):
        spec = load_strategy_spec(build_valid_spec())
        self.assertEqual(spec.name, "Unit_RSI")
        self.assertEqual(len(spec.buy_conditions), 2)
        self.assertEqual(spec.buy_conditions[1].method, "MODE_EMA")
        self.assertEqual(spec.buy_conditions[1].applied_to, "PRICE_CLOSE")
        self.assertEqual(spec.to_payload()["buyConditions"][1]["appliedTo"], "PRICE_CLOSE")


if __name__ == "__main__":
    unittest.main()
