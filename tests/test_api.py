import pytest
from fastapi.testclient import TestClient

from app.main import Services, create_app
from core.errors import ProviderUnavailableError
from tests.helpers import FakeProvider, FakeScorer, make_coin, make_metrics, make_signal

SYMBOLS = ["BTC", "ETH", "SOL", "ADA", "DOT"]


@pytest.fixture
def provider():
    coins = [make_coin(s, alt_rank=i) for i, s in enumerate(SYMBOLS, 1)]
    return FakeProvider(coins, metrics={s: make_metrics(s) for s in SYMBOLS})


@pytest.fixture
def services(settings, tracker, signal_store, provider):
    return Services(
        settings,
        tracker=tracker,
        signal_store=signal_store,
        provider_factory=lambda: provider,
        scorer=FakeScorer({"BTC": 88, "ETH": 55, "SOL": 72}),
    )


@pytest.fixture
def test_client(services):
    return TestClient(create_app(services))


class TestHealthEndpoints:
    def test_health_check(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, test_client):
        assert test_client.get("/").json()["docs"] == "/docs"


class TestTriggerEndpoints:
    """Job trigger and polling"""

    def test_trigger_runs_job_to_completion(self, test_client):
        response = test_client.post("/api/trigger")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["job_id"].startswith("job_")
        assert data["symbols"] == SYMBOLS

        job = test_client.get(f"/api/jobs/{data['job_id']}").json()["job"]
        assert job["status"] == "completed"
        assert job["progress_percentage"] == 100
        assert job["signals_generated"] == 3
        assert job["event_data"]["trigger_type"] == "api"

    def test_trigger_provider_failure(self, test_client, provider):
        provider.top_coins_error = ProviderUnavailableError("LunarCrush API is temporarily unavailable")

        response = test_client.post("/api/trigger")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to queue processing job"}

    def test_describe_trigger(self, test_client):
        data = test_client.get("/api/trigger").json()

        assert data["target_count"] == 3
        assert "POST /api/trigger" in data["usage"]

    def test_unknown_job_404(self, test_client):
        response = test_client.get("/api/jobs/job_missing")

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.parametrize("job_id", [".hidden", "..job", "job%5Cx"])
    def test_malformed_job_id_404(self, test_client, job_id):
        response = test_client.get(f"/api/jobs/{job_id}")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_list_jobs_newest_first(self, test_client):
        first = test_client.post("/api/trigger").json()["job_id"]
        second = test_client.post("/api/trigger").json()["job_id"]

        data = test_client.get("/api/jobs").json()

        assert data["count"] == 2
        assert [j["id"] for j in data["jobs"]] == [second, first]
        assert all(j["status"] == "completed" for j in data["jobs"])
        assert test_client.get("/api/jobs", params={"limit": 1}).json()["count"] == 1


class TestSignalEndpoints:
    """Signal listing, single-symbol analysis, and reset"""

    def test_list_signals(self, test_client, signal_store):
        for i, symbol in enumerate(["BTC", "ETH", "SOL"]):
            signal_store.insert(make_signal(symbol, signal_id=f"{symbol}-{i}"))

        data = test_client.get("/api/signals", params={"limit": 2}).json()

        assert data["count"] == 2
        assert len(data["signals"]) == 2

    def test_analyze_symbol(self, test_client, signal_store):
        response = test_client.post("/api/analyze/btc")

        assert response.status_code == 200
        signal = response.json()["signal"]
        assert signal["symbol"] == "BTC"
        assert signal["confidence"] == 88
        assert signal_store.get(signal["id"]) is not None

    def test_analyze_unsupported_symbol_404(self, test_client):
        response = test_client.post("/api/analyze/NOPE")

        assert response.status_code == 404
        assert "not in the top 100 coins" in response.json()["error"]

    def test_clear_db(self, test_client, signal_store, tracker):
        signal_store.insert(make_signal("BTC", signal_id="BTC-1"))
        tracker.initialize("job_1")

        data = test_client.post("/api/clear-db").json()

        assert data == {"success": True, "signals_deleted": 1, "jobs_deleted": 1}
        assert signal_store.latest() == []

    def test_clear_db_forgets_finished_jobs(self, test_client, tracker):
        job_id = test_client.post("/api/trigger").json()["job_id"]
        assert tracker.is_finished(job_id)

        test_client.post("/api/clear-db")

        assert not tracker.is_finished(job_id)
        assert tracker.active_count == 0
        assert test_client.get(f"/api/jobs/{job_id}").status_code == 404
