import pytest
from app.main import app
from app.routes.submissions import get_publisher

class TestSubmissionFlow:
    """Integration tests for quiz submission"""

    def test_submit_grades_and_stores_attempt(self, client, seeded, publisher):
        response = client.post("/quiz/submit", json={
            "userId": "u1",
            "quizId": "quiz-1",
            "answers": {"q1": "0", "q2": "  paris "},
            "timeSpent": 42
        })

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Quiz submitted successfully"
        attempt = data["quizAttempt"]
        assert (attempt["score"], attempt["maxScore"], attempt["percentage"]) == (3, 3, 100.0)
        assert attempt["timeSpent"] == 42
        assert attempt["timingSuspect"] is False
        assert data["rankData"] == {"oldRank": None, "newRank": 1, "improved": False, "passedUser": None}
        assert [event.type for event in publisher.events] == ["quiz_completed"]

    def test_partial_submission(self, client, seeded):
        response = client.post("/quiz/submit", json={
            "userId": "u1",
            "quizId": "quiz-1",
            "answers": {"q1": "0", "q2": "Lyon"},
            "timeSpent": 20
        })

        attempt = response.json()["quizAttempt"]
        assert (attempt["score"], attempt["maxScore"], attempt["percentage"]) == (1, 3, 33.3)

    def test_rank_improvement_emits_rank_changed(self, client, seeded, save_attempt, publisher):
        save_attempt("u2", 2)
        client.post("/quiz/submit", json={"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0"}, "timeSpent": 10})
        publisher.events.clear()

        response = client.post("/quiz/submit", json={
            "userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0", "q2": "Paris"}, "timeSpent": 10
        })

        rank_data = response.json()["rankData"]
        assert rank_data["oldRank"] == 2
        assert rank_data["newRank"] == 1
        assert rank_data["improved"] is True
        assert rank_data["passedUser"] == {"id": "u2", "name": "Mehmet"}
        rank_event = publisher.events[1].to_wire()
        assert rank_event["type"] == "rank_changed"
        assert rank_event["passedUserName"] == "Mehmet"

    def test_implausible_timing_is_flagged_not_rejected(self, client, seeded):
        response = client.post("/quiz/submit", json={
            "userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0"}, "timeSpent": -30,
            "startedAt": "2999-01-01T00:00:00Z"
        })

        assert response.status_code == 200
        attempt = response.json()["quizAttempt"]
        assert attempt["timeSpent"] == 0
        assert attempt["timingSuspect"] is True

    def test_infinite_time_spent_is_clamped(self, client, seeded):
        response = client.post(
            "/quiz/submit",
            content='{"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0"}, "timeSpent": 1e400}',
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        attempt = response.json()["quizAttempt"]
        assert attempt["timeSpent"] == 86400
        assert attempt["timingSuspect"] is True
        assert attempt["score"] == 1

    @pytest.mark.parametrize("payload", [
        {"quizId": "quiz-1", "answers": {}},
        {"userId": "u1", "answers": {}},
        {"userId": "u1", "quizId": "quiz-1"},
    ])
    def test_missing_fields_are_rejected(self, client, seeded, payload):
        response = client.post("/quiz/submit", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_unknown_quiz(self, client, seeded):
        response = client.post("/quiz/submit", json={"userId": "u1", "quizId": "nope", "answers": {}})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_publish_failure_does_not_fail_submission(self, client, seeded, failing_publisher, store):
        app.dependency_overrides[get_publisher] = lambda: failing_publisher

        response = client.post("/quiz/submit", json={"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0"}})

        assert response.status_code == 200
        assert store.platform_totals()["totalAttempts"] == 1

class TestLeaderboard:
    """Integration tests for leaderboard endpoints"""

    def test_global_leaderboard(self, client, seeded, save_attempt):
        save_attempt("u1", 1)
        save_attempt("u2", 3)
        save_attempt("u2", 2)

        response = client.get("/leaderboard")

        assert response.status_code == 200
        top = response.json()["topUsers"]
        assert [(entry["rank"], entry["id"]) for entry in top] == [(1, "u2"), (2, "u1")]
        assert top[0]["totalScore"] == 5
        assert top[0]["totalQuizzes"] == 2
        assert top[0]["bestScore"] == 3

    def test_leaderboard_limit(self, client, seeded, save_attempt):
        save_attempt("u1", 1)
        save_attempt("u2", 3)

        assert len(client.get("/leaderboard?limit=1").json()["topUsers"]) == 1

    def test_user_stats(self, client, seeded, save_attempt):
        save_attempt("u1", 1)
        save_attempt("u1", 3)
        save_attempt("u2", 3)

        data = client.get("/leaderboard/users/u1").json()

        assert data["completedTests"] == 2
        assert data["successRate"] == 67
        assert data["ranking"] == 1
        assert data["totalScore"] == 4
        assert data["maxScore"] == 6
        assert len(data["recentAttempts"]) == 2
        assert [entry["id"] for entry in data["nearbyUsers"]] == ["u1", "u2"]

    def test_user_without_attempts_is_unranked(self, client, seeded):
        data = client.get("/leaderboard/users/u3").json()

        assert data["completedTests"] == 0
        assert data["successRate"] == 0
        assert data["ranking"] is None
        assert data["nearbyUsers"] == []

class TestAnalyticsEndpoints:
    """Integration tests for admin analytics"""

    def test_overview_on_empty_platform(self, client, seeded):
        response = client.get("/admin/analytics/overview")

        assert response.status_code == 200
        data = response.json()
        assert data["totals"]["totalAttempts"] == 0
        assert data["totals"]["totalUsers"] == 3
        assert data["charts"]["hardestQuestions"] == []
        assert data["highlights"]["mostChallengingCategory"] is None

    def test_overview_after_submissions(self, client, seeded):
        client.post("/quiz/submit", json={"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0", "q2": "Lyon"}, "timeSpent": 30})
        client.post("/quiz/submit", json={"userId": "u2", "quizId": "quiz-1", "answers": {"q1": "1", "q2": "Paris"}, "timeSpent": 30})

        data = client.get("/admin/analytics/overview").json()

        hardest = {item["questionId"]: item for item in data["charts"]["hardestQuestions"]}
        assert hardest["q1"]["incorrectRate"] == 50.0
        assert hardest["q2"]["incorrectRate"] == 50.0
        assert hardest["q1"]["averageTime"] == 15
        assert data["charts"]["categorySuccess"] == [{"category": "Geography", "successRate": 50.0}]
        assert len(data["smartInsights"]["strugglingAssignments"]) == 2

    def test_user_analytics(self, client, seeded):
        client.post("/quiz/submit", json={"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0", "q2": "Lyon"}, "timeSpent": 30})
        client.post("/quiz/submit", json={"userId": "u1", "quizId": "quiz-1", "answers": {"q1": "0", "q2": "Paris"}, "timeSpent": 30})

        data = client.get("/admin/analytics/users/u1").json()

        assert data["user"]["name"] == "Ayşe"
        assert data["summary"]["totalAttempts"] == 2
        assert data["summary"]["improvement"] == 66.7
        assert data["quizPerformance"][0]["correct"] == 3

    def test_unknown_user_analytics(self, client, seeded):
        response = client.get("/admin/analytics/users/ghost")

        assert response.status_code == 404

    def test_stats(self, client, seeded):
        assert client.get("/admin/stats").json()["totalQuestions"] == 2

class TestServiceEndpoints:
    def test_root_and_health(self, client):
        assert client.get("/").status_code == 200
        health = client.get("/health").json()
        assert health["status"] == "ok"
        assert "notifications" in health

    def test_notification_socket_rejects_malformed_messages(self, client):
        with client.websocket_connect("/ws/notifications") as websocket:
            websocket.send_text("not json")
            message = websocket.receive_json()

        assert message["type"] == "error"
        assert message["message"] == "Invalid message format"
