import unittest

from pydantic import ValidationError

from strategy_model import (
    IndicatorCondition,
    InvalidArgument,
    Side,
    StrategySpecification,
    add_condition,
    create_default,
    remove_condition,
    set_risk_field,
    set_strategy_field,
    update_condition,
)


def build_spec_with_conditions():
    spec = create_default()
    spec = add_condition(spec, Side.BUY)
    spec = add_condition(spec, Side.BUY, {"name": "Stochastic", "period": 5, "condition": "CROSS_UP", "value": 20})
    spec = add_condition(spec, Side.SELL)
    return spec


class CreateDefaultTests(unittest.TestCase):
    def test_default_has_empty_condition_lists_and_fixed_risk(self):
        spec = create_default()
        self.assertEqual(spec.buy_conditions, ())
        self.assertEqual(spec.sell_conditions, ())
        self.assertEqual(spec.risk.management_type, "FIXED")
        self.assertEqual(spec.risk.stop_loss_points, 500)
        self.assertEqual(spec.risk.take_profit_points, 1000)
        self.assertAlmostEqual(spec.risk.lot_size, 0.1)

    def test_specification_is_frozen(self):
        spec = create_default()
        with self.assertRaises(ValidationError):
            spec.name = "Changed"


class ConditionEditTests(unittest.TestCase):
    def test_add_condition_uses_side_defaults(self):
        spec = add_condition(add_condition(create_default(), "BUY"), "SELL")

        buy = spec.buy_conditions[0]
        sell = spec.sell_conditions[0]
        self.assertEqual((buy.name, buy.period, buy.condition, buy.value), ("RSI", 14, "LESS", 30))
        self.assertEqual((sell.name, sell.period, sell.condition, sell.value), ("RSI", 14, "GREATER", 70))
        self.assertNotEqual(buy.id, sell.id)

    def test_add_condition_does_not_mutate_input(self):
        original = create_default()
        updated = add_condition(original, Side.BUY)
        self.assertEqual(len(original.buy_conditions), 0)
        self.assertEqual(len(updated.buy_conditions), 1)
        self.assertIsNot(original, updated)

    def test_add_condition_accepts_lowercase_side(self):
        spec = add_condition(create_default(), "sell")
        self.assertEqual(len(spec.sell_conditions), 1)

    def test_add_condition_rejects_unknown_side(self):
        with self.assertRaises(InvalidArgument):
            add_condition(create_default(), "HOLD")
        with self.assertRaises(InvalidArgument):
            add_condition(create_default(), None)

    def test_add_condition_rejects_invalid_defaults(self):
        with self.assertRaises(InvalidArgument):
            add_condition(create_default(), Side.BUY, {"period": 0})

    def test_update_condition_replaces_element(self):
        spec = build_spec_with_conditions()
        replacement = IndicatorCondition(name="CCI", period=20, condition="LESS", value=-100)

        updated = update_condition(spec, Side.BUY, 1, replacement)

        self.assertEqual(updated.buy_conditions[1], replacement)
        self.assertEqual(updated.buy_conditions[0], spec.buy_conditions[0])
        self.assertEqual(spec.buy_conditions[1].name, "Stochastic")

    def test_update_condition_accepts_mapping(self):
        spec = build_spec_with_conditions()
        updated = update_condition(spec, "SELL", 0, {"name": "ADX", "period": 10, "condition": "GREATER", "value": 25})
        self.assertEqual(updated.sell_conditions[0].name, "ADX")
        self.assertEqual(updated.sell_conditions[0].period, 10)

    def test_update_condition_mapping_keeps_condition_id(self):
        spec = build_spec_with_conditions()
        original_id = spec.buy_conditions[0].id

        updated = update_condition(spec, Side.BUY, 0, {"name": "RSI", "period": 21, "condition": "LESS", "value": 25})

        self.assertEqual(updated.buy_conditions[0].id, original_id)
        self.assertEqual(updated.buy_conditions[0].period, 21)

    def test_duplicate_condition_ids_are_rejected(self):
        spec = add_condition(create_default(), Side.BUY, {"id": "entry"})
        with self.assertRaises(InvalidArgument):
            add_condition(spec, Side.BUY, {"id": "entry"})

        spec = add_condition(spec, Side.BUY)
        with self.assertRaises(InvalidArgument):
            update_condition(spec, Side.BUY, 1, IndicatorCondition(id="entry"))
        with self.assertRaises(InvalidArgument):
            update_condition(spec, Side.BUY, 1, {"id": "entry"})

    def test_same_id_allowed_on_opposite_sides(self):
        spec = add_condition(create_default(), Side.BUY, {"id": "shared"})
        spec = add_condition(spec, Side.SELL, {"id": "shared"})
        self.assertEqual(spec.sell_conditions[0].id, "shared")

    def test_model_validation_rejects_duplicate_ids(self):
        payload = add_condition(create_default(), Side.SELL, {"id": "exit"}).to_payload()
        payload["sellConditions"].append(dict(payload["sellConditions"][0]))
        with self.assertRaises(ValidationError):
            StrategySpecification.model_validate(payload)

    def test_non_finite_numbers_are_rejected(self):
        with self.assertRaises(ValidationError):
            IndicatorCondition(value=float("nan"))
        with self.assertRaises(InvalidArgument):
            add_condition(create_default(), Side.BUY, {"value": float("inf")})
        with self.assertRaises(InvalidArgument):
            set_risk_field(create_default(), "lotSize", float("inf"))

    def test_update_condition_out_of_range_raises(self):
        spec = build_spec_with_conditions()
        condition = IndicatorCondition()
        with self.assertRaises(InvalidArgument):
            update_condition(spec, Side.BUY, 2, condition)
        with self.assertRaises(InvalidArgument):
            update_condition(spec, Side.BUY, -1, condition)
        with self.assertRaises(InvalidArgument):
            update_condition(spec, Side.SELL, 1, condition)

    def test_remove_condition_removes_only_from_named_side(self):
        spec = build_spec_with_conditions()
        updated = remove_condition(spec, Side.BUY, 0)

        self.assertEqual(len(updated.buy_conditions), 1)
        self.assertEqual(updated.buy_conditions[0].name, "Stochastic")
        self.assertEqual(updated.sell_conditions, spec.sell_conditions)

    def test_remove_condition_out_of_range_is_noop(self):
        spec = build_spec_with_conditions()
        updated = remove_condition(spec, Side.SELL, 7)
        self.assertEqual(updated, spec)
        self.assertEqual(remove_condition(spec, Side.BUY, -1), spec)

    def test_period_must_be_positive(self):
        with self.assertRaises(ValidationError):
            IndicatorCondition(period=0)

    def test_method_only_effective_for_moving_average(self):
        rsi = IndicatorCondition(name="RSI", method="MODE_EMA")
        ma = IndicatorCondition(name="Moving Average", method="MODE_EMA")
        self.assertIsNone(rsi.effective_method)
        self.assertEqual(ma.effective_method, "MODE_EMA")


class RiskFieldTests(unittest.TestCase):
    def test_set_risk_field_accepts_snake_and_camel_case(self):
        spec = set_risk_field(create_default(), "stop_loss_points", 250)
        spec = set_risk_field(spec, "takeProfitPoints", 750)
        self.assertEqual(spec.risk.stop_loss_points, 250)
        self.assertEqual(spec.risk.take_profit_points, 750)

    def test_set_risk_field_unknown_field_raises(self):
        with self.assertRaises(InvalidArgument):
            set_risk_field(create_default(), "leverage", 10)

    def test_set_risk_field_invalid_value_raises(self):
        with self.assertRaises(InvalidArgument):
            set_risk_field(create_default(), "lotSize", 0)
        with self.assertRaises(InvalidArgument):
            set_risk_field(create_default(), "stopLossPoints", -5)

    def test_mode_switch_retains_inactive_fields(self):
        spec = set_risk_field(create_default(), "managementType", "MARTINGALE")
        spec = set_risk_field(spec, "multiplier", 2.0)
        spec = set_risk_field(spec, "managementType", "GRID")
        self.assertEqual(spec.risk.multiplier, 2.0)
        self.assertEqual(spec.risk.active_mode_fields(), {"grid_step": 300})

        spec = set_risk_field(spec, "managementType", "MARTINGALE")
        self.assertEqual(spec.risk.active_mode_fields(), {"multiplier": 2.0})

    def test_inactive_mode_values_are_not_errors(self):
        spec = set_risk_field(create_default(), "multiplier", 0)
        self.assertEqual(spec.risk.management_type, "FIXED")
        self.assertEqual(spec.risk.active_mode_fields(), {})


class StrategyFieldTests(unittest.TestCase):
    def test_set_strategy_field_updates_asset(self):
        spec = set_strategy_field(create_default(), "asset", "EURUSD")
        self.assertEqual(spec.asset, "EURUSD")

    def test_set_strategy_field_rejects_unsupported_values(self):
        with self.assertRaises(InvalidArgument):
            set_strategy_field(create_default(), "asset", "DOGEUSD")
        with self.assertRaises(InvalidArgument):
            set_strategy_field(create_default(), "timeframe", "PERIOD_W1")
        with self.assertRaises(InvalidArgument):
            set_strategy_field(create_default(), "name", "   ")

    def test_set_strategy_field_rejects_non_editable_fields(self):
        with self.assertRaises(InvalidArgument):
            set_strategy_field(create_default(), "buyConditions", [])
        with self.assertRaises(InvalidArgument):
            set_strategy_field(create_default(), "author", "me")


if __name__ == "__main__":
    unittest.main()
