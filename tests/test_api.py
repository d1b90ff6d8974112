import asyncio
import unittest

import httpx
from fastapi.testclient import TestClient

from app import session_manager
from app.app_state import ForecastSession
from app.domain import ForecastRequest, ForecastResult
from app.errors import EngineFailure
from app.forecast_service import ForecastService
from app.main import app as fastapi_app
from app.providers import HeuristicForecastProvider
from app.session_store import RedisSessionStore


class FixedRandom:
    def random(self):
        return 0.5


class FailingProvider:
    name = "failing"

    async def predict(self, request):
        raise EngineFailure("backend timed out")


class StaticProvider:
    name = "static"

    def __init__(self, *predictions):
        self._predictions = list(predictions)

    async def predict(self, request):
        return ForecastResult(prediction=self._predictions.pop(0), confidence=90)


FORM = {
    "date": "2025-06-01",
    "temperature": 30,
    "humidity": 50,
    "windSpeed": 10,
    "weather": "clear",
    "season": "summer",
    "holiday": False,
    "workingDay": True,
}


class TestApi(unittest.TestCase):
    def setUp(self):
        import app.api as api_mod
        from app.config import settings

        self.api_mod = api_mod
        self._orig_service = api_mod.FORECAST_SERVICE
        self._orig_api_key = settings.api_key
        session_manager.use_in_memory_store_for_tests()
        api_mod.FORECAST_SERVICE = ForecastService(HeuristicForecastProvider(latency_seconds=0, rng=FixedRandom()))
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        from app.config import settings

        self.api_mod.FORECAST_SERVICE = self._orig_service
        settings.api_key = self._orig_api_key

    def _start(self) -> str:
        resp = self.client.post("/v1/session/start")
        self.assertEqual(resp.status_code, 200)
        return resp.json()["session_id"]

    def test_forecast_flow(self):
        sid = self._start()

        resp = self.client.post(f"/v1/session/{sid}/forecast", json=FORM)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["forecast"]["prediction"], 6700)
        self.assertEqual(data["forecast"]["confidence"], 90)
        self.assertEqual(data["forecast"]["demand_level"], "high")
        self.assertEqual(data["forecast"]["usage"], "peak")
        self.assertEqual(data["entry"]["prediction"], 6700)

        current = self.client.get(f"/v1/session/{sid}/forecast").json()
        self.assertFalse(current["loading"])
        self.assertEqual(current["forecast"]["prediction"], 6700)

    def test_current_forecast_empty_session(self):
        sid = self._start()
        current = self.client.get(f"/v1/session/{sid}/forecast").json()
        self.assertIsNone(current["forecast"])

    def test_validation_error_creates_no_entry(self):
        sid = self._start()
        resp = self.client.post(f"/v1/session/{sid}/forecast", json={**FORM, "humidity": 120})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["detail"]["field"], "humidity")

        history = self.client.get(f"/v1/session/{sid}/history").json()
        self.assertEqual(history["total"], 0)

    def test_engine_failure_returns_502_and_keeps_state(self):
        sid = self._start()
        self.client.post(f"/v1/session/{sid}/forecast", json=FORM)

        self.api_mod.FORECAST_SERVICE = ForecastService(FailingProvider())
        resp = self.client.post(f"/v1/session/{sid}/forecast", json=FORM)
        self.assertEqual(resp.status_code, 502)

        dashboard = self.client.get(f"/v1/session/{sid}/dashboard").json()
        self.assertEqual(dashboard["total_predictions"], 1)
        self.assertFalse(self.api_mod.FORECAST_SERVICE.is_in_flight(sid))

    def test_in_flight_submission_returns_409(self):
        sid = self._start()
        self.api_mod.FORECAST_SERVICE._in_flight.add(sid)
        resp = self.client.post(f"/v1/session/{sid}/forecast", json=FORM)
        self.assertEqual(resp.status_code, 409)
        self.assertTrue(self.client.get(f"/v1/session/{sid}/forecast").json()["loading"])

    def test_history_order_dashboard_and_clear(self):
        self.api_mod.FORECAST_SERVICE = ForecastService(StaticProvider(3000, 5000))
        sid = self._start()
        self.client.post(f"/v1/session/{sid}/forecast", json=FORM)
        self.client.post(f"/v1/session/{sid}/forecast", json={**FORM, "date": "2025-06-02"})

        newest = self.client.get(f"/v1/session/{sid}/history").json()
        self.assertEqual([e["prediction"] for e in newest["entries"]], [5000, 3000])
        self.assertEqual(newest["total"], 2)
        self.assertEqual(newest["average"], 4000)

        oldest = self.client.get(f"/v1/session/{sid}/history", params={"order": "oldest"}).json()
        self.assertEqual([e["prediction"] for e in oldest["entries"]], [3000, 5000])

        dashboard = self.client.get(f"/v1/session/{sid}/dashboard").json()
        self.assertEqual(dashboard["total_predictions"], 2)
        self.assertEqual(dashboard["average_demand"], 4000)
        self.assertEqual(dashboard["last_prediction"], 5000)
        self.assertEqual(dashboard["model_accuracy"], 94.2)
        self.assertEqual(len(dashboard["monthly_trend"]), 6)

        cleared = self.client.delete(f"/v1/session/{sid}/history")
        self.assertEqual(cleared.json()["cleared"], 2)
        dashboard = self.client.get(f"/v1/session/{sid}/dashboard").json()
        self.assertEqual(dashboard["total_predictions"], 0)
        self.assertEqual(dashboard["average_demand"], 0)
        self.assertIsNone(dashboard["last_prediction"])

    def test_invalid_history_order_422(self):
        sid = self._start()
        resp = self.client.get(f"/v1/session/{sid}/history", params={"order": "random"})
        self.assertEqual(resp.status_code, 422)

    def test_export(self):
        sid = self._start()
        refused = self.client.get(f"/v1/session/{sid}/history/export")
        self.assertEqual(refused.status_code, 409)

        self.client.post(f"/v1/session/{sid}/forecast", json=FORM)
        resp = self.client.get(f"/v1/session/{sid}/history/export")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("text/csv"))
        self.assertIn('filename="bike_predictions_', resp.headers["content-disposition"])
        lines = resp.content.decode("utf-8").split("\n")
        self.assertEqual(lines[0], "Data,Previsão,Clima,Temperatura,Timestamp")
        self.assertTrue(lines[1].startswith("2025-06-01,6700,clear,30°C,"))
        self.assertEqual(len(lines), 2)

    def test_unknown_session_404(self):
        for method, path in (
            ("post", "/v1/session/nope/forecast"),
            ("get", "/v1/session/nope/history"),
            ("delete", "/v1/session/nope/history"),
            ("get", "/v1/session/nope/dashboard"),
            ("get", "/v1/session/nope/history/export"),
        ):
            with self.subTest(path=path):
                kwargs = {"json": FORM} if method == "post" else {}
                resp = getattr(self.client, method)(path, **kwargs)
                self.assertEqual(resp.status_code, 404)

    def test_requires_api_key_when_set(self):
        from app.config import settings

        settings.api_key = "sekret"
        missing = self.client.post("/v1/session/start")
        self.assertEqual(missing.status_code, 401)

        wrong = self.client.post("/v1/session/start", headers={"X-API-Key": "nope"})
        self.assertEqual(wrong.status_code, 401)

        ok = self.client.post("/v1/session/start", headers={"X-API-Key": "sekret"})
        self.assertEqual(ok.status_code, 200)


class FakeRedis:
    def __init__(self):
        self.store = {}

    def setex(self, key, ttl, value):
        self.store[key] = value

    def get(self, key):
        return self.store.get(key)

    def expire(self, key, ttl):
        pass

    def delete(self, key):
        self.store.pop(key, None)

    def scan_iter(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in list(self.store.keys()) if k.startswith(prefix)]


class GatedProvider:
    name = "gated"

    def __init__(self, prediction):
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.prediction = prediction

    async def predict(self, request):
        self.started.set()
        await self.gate.wait()
        return ForecastResult(prediction=self.prediction, confidence=90)


class TestApiWithRedisStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        import app.api as api_mod

        self.api_mod = api_mod
        self._orig_service = api_mod.FORECAST_SERVICE
        session_manager._store = RedisSessionStore(FakeRedis())

    def tearDown(self):
        self.api_mod.FORECAST_SERVICE = self._orig_service
        session_manager.use_in_memory_store_for_tests()

    async def test_clear_during_forecast_is_kept(self):
        seeded = ForecastSession()
        seeded.record_forecast(ForecastRequest.model_validate(FORM), ForecastResult(prediction=1000, confidence=90))
        sid = session_manager.create_session(seeded)

        provider = GatedProvider(5000)
        self.api_mod.FORECAST_SERVICE = ForecastService(provider)

        transport = httpx.ASGITransport(app=fastapi_app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            pending = asyncio.create_task(client.post(f"/v1/session/{sid}/forecast", json=FORM))
            await asyncio.wait_for(provider.started.wait(), timeout=5)

            cleared = await client.delete(f"/v1/session/{sid}/history")
            self.assertEqual(cleared.json()["cleared"], 1)

            provider.gate.set()
            resp = await pending
            self.assertEqual(resp.status_code, 200)

            history = (await client.get(f"/v1/session/{sid}/history")).json()

        self.assertEqual([e["prediction"] for e in history["entries"]], [5000])
        stored = session_manager.get_session(sid)
        self.assertEqual([e.prediction for e in stored.history.entries], [5000])


if __name__ == "__main__":
    unittest.main()
