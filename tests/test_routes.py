"""HTTP tests for the JSON API using the Flask test client."""

from __future__ import annotations

import pytest

from streakline.services import checkins as checkins_module


@pytest.fixture
def auth(api_user):
    _, headers = api_user()
    return headers


def create_habit(client, headers, **overrides):
    payload = {"name": "Read", "target_type": "daily", "start_date": "2024-01-01"}
    payload.update(overrides)
    response = client.post("/api/habits", json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


class TestAuthentication:
    @pytest.mark.parametrize("headers", [{}, {"X-User-Id": "abc"}, {"X-User-Id": "0"}, {"X-User-Id": "999"}])
    def test_missing_or_unknown_user(self, client, headers):
        response = client.get("/api/habits", headers=headers)
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"


class TestHabitRoutes:
    def test_create_list_get(self, client, auth):
        created = create_habit(client, auth)

        listed = client.get("/api/habits/", headers=auth).get_json()
        fetched = client.get(f"/api/habits/{created['id']}", headers=auth).get_json()

        assert [habit["id"] for habit in listed] == [created["id"]]
        assert fetched["name"] == "Read"
        assert fetched["current_streak"] == 0

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"name": "Read"}, "Name, target type, and start date are required"),
            ({"name": "Read", "target_type": "custom", "start_date": "2024-01-01"}, "Target days are required for custom target type"),
            ({"name": "Read", "target_type": "hourly", "start_date": "2024-01-01"}, "Invalid target type"),
        ],
    )
    def test_create_validation(self, client, auth, payload, message):
        response = client.post("/api/habits", json=payload, headers=auth)
        assert response.status_code == 400
        assert response.get_json() == {"error": "invalid_request", "message": message}

    def test_other_users_habit_is_not_found(self, client, auth, api_user):
        created = create_habit(client, auth)
        _, other = api_user("intruder")

        assert client.get(f"/api/habits/{created['id']}", headers=other).status_code == 404
        response = client.post(
            f"/api/habits/{created['id']}/checkins",
            json={"date": "2024-01-01", "status": "completed"},
            headers=other,
        )
        assert response.status_code == 404

    def test_update_and_delete(self, client, auth):
        created = create_habit(client, auth)

        response = client.put(
            f"/api/habits/{created['id']}",
            json={"target_type": "custom", "target_days": ["sat", "sun"]},
            headers=auth,
        )
        assert response.status_code == 200
        assert response.get_json()["target_days"] == ["sat", "sun"]

        assert client.delete(f"/api/habits/{created['id']}", headers=auth).status_code == 204
        assert client.get(f"/api/habits/{created['id']}", headers=auth).status_code == 404


class TestCheckinRoutes:
    def test_submit_returns_streaks(self, client, auth):
        habit = create_habit(client, auth)
        url = f"/api/habits/{habit['id']}/checkins"

        for day in ("2024-01-01", "2024-01-02T21:15:00Z", "2024-01-03"):
            response = client.post(url, json={"date": day, "status": "completed"}, headers=auth)
            assert response.status_code == 200

        assert response.get_json() == {"current_streak": 3, "longest_streak": 3}

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"date": "2024-01-01"}, "Date and status are required"),
            ({"status": "completed"}, "Date and status are required"),
            ({"date": "2024-01-01", "status": "skipped"}, 'Status must be either "completed" or "missed"'),
        ],
    )
    def test_submit_validation(self, client, auth, payload, message):
        habit = create_habit(client, auth)
        response = client.post(f"/api/habits/{habit['id']}/checkins", json=payload, headers=auth)
        assert response.status_code == 400
        assert response.get_json()["message"] == message

    def test_unknown_habit(self, client, auth):
        response = client.post(
            "/api/habits/4040/checkins", json={"date": "2024-01-01", "status": "completed"}, headers=auth
        )
        assert response.status_code == 404
        assert response.get_json()["error"] == "habit_not_found"

    def test_list_range(self, client, auth):
        habit = create_habit(client, auth)
        url = f"/api/habits/{habit['id']}/checkins"
        for day, status in (("2024-01-03", "missed"), ("2024-01-01", "completed"), ("2024-02-01", "completed")):
            client.post(url, json={"date": day, "status": status}, headers=auth)

        response = client.get(url, query_string={"start_date": "2024-01-01", "end_date": "2024-01-31"}, headers=auth)

        assert response.get_json() == [
            {"date": "2024-01-01", "status": "completed"},
            {"date": "2024-01-03", "status": "missed"},
        ]

    def test_list_rejects_inverted_range(self, client, auth):
        habit = create_habit(client, auth)
        response = client.get(
            f"/api/habits/{habit['id']}/checkins",
            query_string={"start_date": "2024-02-01", "end_date": "2024-01-01"},
            headers=auth,
        )
        assert response.status_code == 400

    def test_storage_failure_is_opaque_500(self, client, auth, monkeypatch):
        habit = create_habit(client, auth)

        def broken_recompute(session, habit):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(checkins_module, "recompute", broken_recompute)
        response = client.post(
            f"/api/habits/{habit['id']}/checkins", json={"date": "2024-01-01", "status": "completed"}, headers=auth
        )

        assert response.status_code == 500
        body = response.get_json()
        assert body["error"] == "checkin_failed"
        assert "locked" not in body["message"]

    def test_batch(self, client, auth, api_user):
        first = create_habit(client, auth, name="Read")
        second = create_habit(client, auth, name="Run")
        _, other = api_user("other")
        foreign = create_habit(client, other, name="Swim")

        response = client.post(
            "/api/checkins/batch",
            json={
                "date": "2024-01-05",
                "updates": [
                    {"habit_id": first["id"], "status": "completed"},
                    {"habit_id": foreign["id"], "status": "completed"},
                    {"habit_id": second["id"], "status": "missed"},
                ],
            },
            headers=auth,
        )

        assert response.status_code == 200
        assert response.get_json() == {
            "updated_habit_ids": [first["id"], second["id"]],
            "streaks": {str(first["id"]): 1, str(second["id"]): 0},
        }

    @pytest.mark.parametrize(
        "payload",
        [
            {"date": "2024-01-05"},
            {"date": "2024-01-05", "updates": []},
            {"updates": [{"habit_id": 1, "status": "completed"}]},
            {"date": "2024-01-05", "updates": [{"habit_id": 1}]},
        ],
    )
    def test_batch_validation(self, client, auth, payload):
        response = client.post("/api/checkins/batch", json=payload, headers=auth)
        assert response.status_code == 400


class TestAnalyticsRoutes:
    def test_summary_and_heatmap(self, client, auth):
        """Summary and heatmap reflect a recorded check-in."""
        habit = create_habit(client, auth)
        client.post(f"/api/habits/{habit['id']}/checkins", json={"date": "2024-01-02", "status": "completed"}, headers=auth)

        summary = client.get(
            "/api/analytics/summary", query_string={"start_date": "2024-01-01", "end_date": "2024-01-31"}, headers=auth
        ).get_json()
        heatmap = client.get(
            "/api/analytics/heatmap", query_string={"start_date": "2024-01-01", "end_date": "2024-01-31"}, headers=auth
        ).get_json()

        assert summary["total_habits"] == 1
        assert summary["completion_rate"] == 100.0
        assert heatmap[str(habit["id"])]["checkins"] == {"2024-01-02": "completed"}


class TestActivityRoutes:
    @pytest.fixture
    def habit(self, client, auth):
        habit = create_habit(client, auth)
        for day in ("2024-01-01", "2024-01-02"):
            client.post(f"/api/habits/{habit['id']}/checkins", json={"date": day, "status": "completed"}, headers=auth)
        return habit

    def test_recent(self, client, auth, habit):
        """The newly created habit is newer than its back-dated completions."""
        feed = client.get("/api/activities/recent", query_string={"limit": "2"}, headers=auth).get_json()

        assert [item["type"] for item in feed] == ["habit_created", "habit_completed"]
        assert feed[0]["related_id"] == habit["id"]
        assert feed[1]["id"] == f"habit-{habit['id']}-completed-2024-01-02"

    def test_list_all(self, client, auth, habit):
        feed = client.get("/api/activities", headers=auth).get_json()
        assert len(feed) == 3

    def test_filter_by_type(self, client, auth, habit):
        response = client.get("/api/activities/type/habit_completed", headers=auth)

        assert response.status_code == 200
        assert [item["timestamp"][:10] for item in response.get_json()] == ["2024-01-02", "2024-01-01"]

    def test_unknown_type(self, client, auth):
        response = client.get("/api/activities/type/habit_exploded", headers=auth)
        assert response.status_code == 400
        assert response.get_json()["message"] == "Invalid activity type"

    def test_bad_limit(self, client, auth):
        assert client.get("/api/activities/recent", query_string={"limit": "-1"}, headers=auth).status_code == 400

    def test_requires_user(self, client):
        assert client.get("/api/activities").status_code == 401


class TestUserRoutes:
    def test_register_and_login(self, client):
        response = client.post("/api/users", json={"username": "ada", "password": "correct horse"})
        assert response.status_code == 201
        user_id = response.get_json()["id"]

        login = client.post("/api/users/login", json={"username": "ada", "password": "correct horse"})
        assert login.status_code == 200
        assert login.get_json() == {"id": user_id, "username": "ada"}

        habits = client.get("/api/habits", headers={"X-User-Id": str(user_id)})
        assert habits.status_code == 200

    def test_duplicate_username(self, client):
        client.post("/api/users", json={"username": "ada", "password": "correct horse"})
        response = client.post("/api/users", json={"username": "ada", "password": "another pass"})
        assert response.status_code == 409

    def test_bad_password(self, client):
        client.post("/api/users", json={"username": "ada", "password": "correct horse"})
        response = client.post("/api/users/login", json={"username": "ada", "password": "wrong horse"})
        assert response.status_code == 401
