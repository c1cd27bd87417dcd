"""Tests for the stats HTTP routes"""
import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient

import service.stats_service as stats_service
from app.deps.common import get_counter_store, get_db_session
from app.main import app
from core.models import Account, Toot
from helpers import add_account_bucket, add_hashtag_stats, add_toot_bucket, local_day


def parse_instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def client(db_session, store, now, monkeypatch):
    """API client bound to the test database and a fixed clock"""
    resolve_timeframe = stats_service.resolve_timeframe
    compute_period_kpi = stats_service.compute_period_kpi

    def pinned_timeframe(timezone_name, timeframe, at=None):
        return resolve_timeframe(timezone_name, timeframe, at or now)

    def pinned_kpi(*args, now=None, _now=now):
        return compute_period_kpi(*args, now=now or _now)

    monkeypatch.setattr(stats_service, "resolve_timeframe", pinned_timeframe)
    monkeypatch.setattr(stats_service, "compute_period_kpi", pinned_kpi)

    app.dependency_overrides[get_db_session] = lambda: db_session
    app.dependency_overrides[get_counter_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestKpiRoute:

    def test_followers_month_kpi(self, client, db_session, berlin_account):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 4, 1), followers_count=100)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), followers_count=150)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 14), followers_count=200)

        response = client.get(f"/api/v1/accounts/{berlin_account.id}/followers/kpi/month")

        assert response.status_code == 200
        body = response.json()
        assert body["current_period"] == 50
        assert body["previous_period"] == 50
        assert body["current_period_progress"] == pytest.approx(14 / 31)
        assert body["trend"] == pytest.approx((50 * 31 / 14 - 50) / 50)

    def test_infinite_trend_serializes_as_string(self, client, db_session, berlin_account):
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 4, 1), boosts_count=10)
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, 1), boosts_count=10)
        add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, 14), boosts_count=25)

        response = client.get(f"/api/v1/accounts/{berlin_account.id}/boosts/kpi/month")

        assert response.json()["trend"] == "infinite"

    def test_fields_without_data_are_omitted(self, client, berlin_account):
        response = client.get(f"/api/v1/accounts/{berlin_account.id}/replies/kpi/year")

        assert response.status_code == 200
        assert response.json() == {}

    def test_unknown_account_is_404(self, client):
        response = client.get("/api/v1/accounts/nobody/followers/kpi/week")

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "ACCOUNT_NOT_FOUND"

    def test_invalid_account_timezone_is_422(self, client, db_session):
        db_session.add(Account(id="acc-bad", name="eve", timezone="Moon/Base"))
        db_session.commit()

        response = client.get("/api/v1/accounts/acc-bad/followers/kpi/week")

        assert response.status_code == 422
        assert response.json()["detail"]["error"]["code"] == "INVALID_TIMEZONE"

    def test_unknown_metric_is_rejected(self, client, berlin_account):
        response = client.get(f"/api/v1/accounts/{berlin_account.id}/likes/kpi/week")
        assert response.status_code == 422


class TestChartRoutes:

    @pytest.fixture
    def boosts(self, db_session, berlin_account):
        for day, value in ((8, 5), (9, 15), (10, 20), (11, 20)):
            add_toot_bucket(db_session, berlin_account.id, local_day(2023, 5, day), boosts_count=value)
        return berlin_account

    def test_delta_chart(self, client, boosts):
        response = client.get(f"/api/v1/accounts/{boosts.id}/boosts/chart", params={"timeframe": "thismonth"})

        assert response.status_code == 200
        assert response.json() == [
            {"date": "2023-05-09", "value": 10},
            {"date": "2023-05-10", "value": 5},
            {"date": "2023-05-11", "value": 0},
        ]

    def test_followers_chart_plots_totals(self, client, db_session, berlin_account):
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 10), followers_count=100)
        add_account_bucket(db_session, berlin_account.id, local_day(2023, 5, 11), followers_count=104)

        response = client.get(f"/api/v1/accounts/{berlin_account.id}/followers/chart", params={"timeframe": "thismonth"})

        assert [point["value"] for point in response.json()] == [100, 104]

    def test_csv_download(self, client, boosts):
        response = client.get(f"/api/v1/accounts/{boosts.id}/boosts/csv", params={"timeframe": "thismonth"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.text == "Date;Boosts\n2023-05-09;10\n2023-05-10;5\n2023-05-11;0\n"

    def test_total_snapshot(self, client, boosts):
        response = client.get(f"/api/v1/accounts/{boosts.id}/boosts/total")

        assert response.json()["amount"] == 20

    def test_total_without_history_is_null(self, client, berlin_account):
        response = client.get(f"/api/v1/accounts/{berlin_account.id}/favorites/total")

        assert response.status_code == 200
        assert response.json() is None


class TestTopTootsRoute:

    def test_ranked_by_top_score(self, client, db_session, berlin_account):
        created_at = datetime(2023, 5, 10, 12, 0, tzinfo=timezone.utc)
        db_session.add_all([
            Toot(id="1", account_id=berlin_account.id, uri="u1", content="quiet", created_at=created_at,
                 replies_count=0, reblogs_count=0, favourites_count=9),
            Toot(id="2", account_id=berlin_account.id, uri="u2", content="popular", created_at=created_at,
                 replies_count=2, reblogs_count=3, favourites_count=0),
        ])
        db_session.commit()

        response = client.get(f"/api/v1/accounts/{berlin_account.id}/toots/top")

        assert response.status_code == 200
        body = response.json()
        assert [toot["id"] for toot in body] == ["2"]
        assert body[0]["rank"] == 5


class TestTimeframeRoute:

    def test_resolves_in_account_timezone(self, client, berlin_account):
        response = client.get(f"/api/v1/accounts/{berlin_account.id}/timeframe", params={"timeframe": "thismonth"})

        assert response.status_code == 200
        body = response.json()
        assert body["timeframe"] == "thismonth"
        assert parse_instant(body["date_from"]) == datetime(2023, 4, 30, 22, 0, tzinfo=timezone.utc)
        assert parse_instant(body["date_to"]) == datetime(2023, 5, 15, 22, 0, tzinfo=timezone.utc)

    def test_unknown_token_falls_back_to_last30days(self, client, berlin_account):
        response = client.get(f"/api/v1/accounts/{berlin_account.id}/timeframe", params={"timeframe": "someday"})

        assert response.status_code == 200
        assert response.json()["timeframe"] == "last30days"

    def test_unknown_account_is_404(self, client):
        response = client.get("/api/v1/accounts/nobody/timeframe")

        assert response.status_code == 404


class TestHashtagRoutes:
    """Hashtag summaries over the persisted daily rows"""

    @pytest.fixture
    def tagged(self, db_session, berlin_account):
        rows = [
            (local_day(2023, 5, 10), "python", 2, 1, 2, 3),
            (local_day(2023, 5, 12), "python", 1, 0, 1, 1),
            (local_day(2023, 5, 11), "rust", 1, 5, 5, 10),
            (local_day(2023, 5, 11), "fediverse", 2, 0, 0, 2),
            # before this month
            (local_day(2023, 4, 20), "go", 9, 9, 9, 9),
        ]
        for day, tag, toots, replies, reblogs, favourites in rows:
            add_hashtag_stats(db_session, berlin_account.id, day, tag, toot_count=toots, replies_count=replies,
                              reblogs_count=reblogs, favourites_count=favourites)
        return berlin_account

    def url(self, account, kind: str) -> str:
        return f"/api/v1/accounts/{account.id}/hashtags/{kind}"

    def test_top_by_toot_count(self, client, tagged):
        response = client.get(self.url(tagged, "top"), params={"timeframe": "thismonth"})

        assert response.status_code == 200
        body = response.json()
        assert [tag["hashtag"] for tag in body] == ["python", "fediverse", "rust"]
        assert body[0]["toot_count"] == 3
        assert body[0]["favourites_count"] == 4

    def test_engagement_sums_replies_boosts_and_favourites(self, client, tagged):
        response = client.get(self.url(tagged, "engagement"), params={"timeframe": "thismonth", "limit": 2})

        body = response.json()
        assert [(tag["hashtag"], tag["total_engagement"]) for tag in body] == [("rust", 20), ("python", 8)]
        assert body[1]["avg_engagement_per_toot"] == 2.67

    def test_effective_ignores_rarely_used_tags(self, client, tagged):
        response = client.get(self.url(tagged, "effective"), params={"timeframe": "thismonth"})

        assert [tag["hashtag"] for tag in response.json()] == ["python", "fediverse"]

    def test_timeline_pivots_daily_counts(self, client, tagged):
        response = client.get(self.url(tagged, "timeline"), params={"timeframe": "thismonth", "limit": 2})

        body = response.json()
        assert body["hashtags"] == ["python", "fediverse"]
        assert body["data"] == [
            {"day": "2023-05-10", "python": 2, "fediverse": 0},
            {"day": "2023-05-11", "python": 0, "fediverse": 2},
            {"day": "2023-05-12", "python": 1, "fediverse": 0},
        ]

    def test_no_rows_in_timeframe(self, client, tagged):
        response = client.get(self.url(tagged, "top"), params={"timeframe": "lastyear"})

        assert response.status_code == 200
        assert response.json() == []

    def test_limit_is_bounded(self, client, tagged):
        response = client.get(self.url(tagged, "top"), params={"limit": 26})

        assert response.status_code == 422


class TestHealthRoute:

    def test_health_pings_database(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["ok"] is True
