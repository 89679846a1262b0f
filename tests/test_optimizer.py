import unittest

from optimizer import OPTIMIZED_SUFFIX, optimize_strategy
from strategy_model import Side, add_condition, create_default, set_risk_field
from strategy_templates import load_template


class OptimizerTests(unittest.TestCase):
    def test_stop_loss_tightens_and_take_profit_widens(self):
        spec = create_default()  # SL 500, TP 1000
        optimized = optimize_strategy(spec)
        self.assertEqual(optimized.risk.stop_loss_points, 450)
        self.assertEqual(optimized.risk.take_profit_points, 1100)

    def test_results_are_floored(self):
        spec = set_risk_field(set_risk_field(create_default(), "stopLossPoints", 333), "takeProfitPoints", 7)
        optimized = optimize_strategy(spec)
        self.assertEqual(optimized.risk.stop_loss_points, 299)
        self.assertEqual(optimized.risk.take_profit_points, 7)

    def test_disabled_exits_stay_disabled(self):
        spec = load_template("martingale-grid")  # SL 0
        optimized = optimize_strategy(spec)
        self.assertEqual(optimized.risk.stop_loss_points, 0)

        no_target = optimize_strategy(set_risk_field(create_default(), "takeProfitPoints", 0))
        self.assertEqual(no_target.risk.take_profit_points, 0)

    def test_every_period_increments_by_one(self):
        spec = load_template("gold-scalper")
        optimized = optimize_strategy(spec)

        self.assertEqual([c.period for c in optimized.buy_conditions], [15, 6])
        self.assertEqual([c.period for c in optimized.sell_conditions], [15, 6])
        self.assertEqual([c.id for c in optimized.buy_conditions], [c.id for c in spec.buy_conditions])

    def test_other_fields_untouched(self):
        spec = add_condition(create_default(), Side.SELL, {"name": "CCI", "value": -50, "shift": 2})
        optimized = optimize_strategy(spec)

        condition = optimized.sell_conditions[0]
        self.assertEqual((condition.name, condition.value, condition.shift), ("CCI", -50, 2))
        self.assertEqual(optimized.risk.trailing_stop_points, spec.risk.trailing_stop_points)
        self.assertEqual(optimized.risk.lot_size, spec.risk.lot_size)
        self.assertEqual(optimized.asset, spec.asset)

    def test_returns_new_value_without_mutating_input(self):
        spec = load_template("gold-scalper")
        optimized = optimize_strategy(spec)
        self.assertIsNot(optimized, spec)
        self.assertEqual(spec.name, "Gold_Scalper_Pro")
        self.assertEqual(spec.risk.stop_loss_points, 300)
        self.assertEqual(spec.buy_conditions[0].period, 14)

    def test_suffix_stacks(self):
        twice = optimize_strategy(optimize_strategy(create_default()))
        self.assertEqual(twice.name.count(OPTIMIZED_SUFFIX), 2)
        self.assertEqual(twice.name, "GoldRush_V1_Optimized_Optimized")

    def test_deterministic(self):
        spec = load_template("btc-trend")
        self.assertEqual(optimize_strategy(spec), optimize_strategy(spec))


if __name__ == "__main__":
    unittest.main()
