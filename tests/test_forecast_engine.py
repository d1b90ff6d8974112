import random
import unittest

from app.domain import ForecastRequest
from app.forecast_engine import DEMAND_FLOOR, base_demand, predict, round_half_up


class SequenceRandom:
    """Returns the given values in order from random()."""

    def __init__(self, *values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def _request(**overrides) -> ForecastRequest:
    data = {
        "date": "2025-06-01",
        "temperature": 20,
        "humidity": 50,
        "wind_speed": 10,
        "weather": "clear",
        "season": "spring",
        "holiday": False,
        "working_day": True,
    }
    data.update(overrides)
    return ForecastRequest(**data)


class TestBaseDemand(unittest.TestCase):
    def test_warm_clear_summer_working_day(self):
        req = _request(temperature=30, weather="clear", season="summer")
        self.assertEqual(base_demand(req), 6700)

    def test_negative_total_clamps_to_floor(self):
        req = _request(temperature=0, weather="heavy_rain", season="winter")
        self.assertEqual(base_demand(req), DEMAND_FLOOR)

    def test_temperature_bands(self):
        cases = {30: 1500, 25.5: 1500, 25: 800, 20: 800, 15: 0, 10: 0, 5: 0, 4.9: -1000, -20: -1000}
        for temperature, adjustment in cases.items():
            with self.subTest(temperature=temperature):
                req = _request(temperature=temperature, weather="unknown", season="unknown")
                self.assertEqual(base_demand(req), 3000 + adjustment)

    def test_unknown_categories_contribute_nothing(self):
        req = _request(temperature=10, weather="snow", season="monsoon")
        self.assertEqual(base_demand(req), 3000)

    def test_calendar_adjustments_stack(self):
        neutral = dict(temperature=10, weather="x", season="x")
        self.assertEqual(base_demand(_request(**neutral, working_day=False)), 3800)
        self.assertEqual(base_demand(_request(**neutral, holiday=True)), 3400)
        self.assertEqual(base_demand(_request(**neutral, working_day=False, holiday=True)), 4200)

    def test_comfort_penalties_stack(self):
        neutral = dict(temperature=10, weather="x", season="x")
        self.assertEqual(base_demand(_request(**neutral, humidity=81)), 2700)
        self.assertEqual(base_demand(_request(**neutral, humidity=80)), 3000)
        self.assertEqual(base_demand(_request(**neutral, wind_speed=31)), 2500)
        self.assertEqual(base_demand(_request(**neutral, humidity=90, wind_speed=40)), 2200)

    def test_accepts_camel_case_payload(self):
        req = ForecastRequest.model_validate({
            "date": "2025-06-01",
            "temperature": 10,
            "humidity": 50,
            "windSpeed": 35,
            "weather": "x",
            "season": "x",
            "holiday": False,
            "workingDay": False,
        })
        self.assertEqual(base_demand(req), 3000 + 800 - 500)


class TestPredict(unittest.TestCase):
    def test_midpoint_draws_give_base_and_ninety(self):
        result = predict(_request(temperature=30, season="summer"), SequenceRandom(0.5, 0.5))
        self.assertEqual(result.prediction, 6700)
        self.assertEqual(result.confidence, 90)

    def test_jitter_extremes(self):
        low = predict(_request(temperature=30, season="summer"), SequenceRandom(0.0, 0.0))
        self.assertEqual(low.prediction, 6500)
        self.assertEqual(low.confidence, 85)

        high = predict(_request(temperature=30, season="summer"), SequenceRandom(0.999999, 0.999999))
        self.assertEqual(high.prediction, 6900)
        self.assertEqual(high.confidence, 95)

    def test_jitter_applies_after_floor(self):
        req = _request(temperature=0, weather="heavy_rain", season="winter")
        result = predict(req, SequenceRandom(0.0, 0.5))
        self.assertEqual(result.prediction, 300)

    def test_confidence_range_with_real_rng(self):
        rng = random.Random(1234)
        req = _request()
        for _ in range(500):
            result = predict(req, rng)
            self.assertIsInstance(result.confidence, int)
            self.assertGreaterEqual(result.confidence, 85)
            self.assertLessEqual(result.confidence, 95)
            self.assertGreaterEqual(result.prediction, base_demand(req) - 200)
            self.assertLessEqual(result.prediction, base_demand(req) + 200)

    def test_seeded_rng_is_reproducible(self):
        req = _request()
        first = predict(req, random.Random(7))
        second = predict(req, random.Random(7))
        self.assertEqual(first, second)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(-2.5), -2)
        self.assertEqual(round_half_up(2.4999), 2)


if __name__ == "__main__":
    unittest.main()
