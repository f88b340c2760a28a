"""Integration tests for the channelhub HTTP service.

Runs the FastAPI app against a per-test Platform through TestClient.
"""

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from channelhub.config import Settings
from channelhub.seeds import seed_demo_data
from services.channelhub_service import main
from services.channelhub_service.dependencies import platform_dependency
from services.channelhub_service.main import app

API = "/api/v1"


@pytest.fixture
def client(platform):
    app.dependency_overrides[platform_dependency] = lambda: platform
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, role: str, name: str, email: str) -> dict:
    response = client.post(
        f"{API}/users",
        json={"role": role, "name": name, "email": email, "credential": "secret"},
    )
    assert response.status_code == 201, response.text
    return response.json()


def create_channel(client: TestClient, professor_id: str, name: str = "Intro to AI") -> dict:
    response = client.post(
        f"{API}/channels",
        json={"professor_id": professor_id, "name": name, "department": "AI"},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestUsersAndAuth:
    """Tests for registration and sessions."""

    def test_register_and_fetch(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")

        response = client.get(f"{API}/users/{prof['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "professor"
        assert body["stars"] == 0.0
        assert body["language"] == "ar"

    def test_duplicate_email_conflicts(self, client) -> None:
        register(client, "student", "Fatima", "fatima@example.com")

        response = client.post(
            f"{API}/users",
            json={"role": "professor", "name": "Other", "email": "FATIMA@example.com"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "ENTITY_ALREADY_EXISTS"

    def test_profile_update_rejects_unknown_user(self, client) -> None:
        response = client.patch(f"{API}/users/{uuid4()}", json={"name": "Ghost"})

        assert response.status_code == 404
        assert response.json()["type"] == "EntityNotFoundError"

    def test_search_professors(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        register(client, "student", "Fatima", "fatima@example.com")

        response = client.get(f"{API}/users/professors", params={"term": "djamel"})

        assert [p["id"] for p in response.json()] == [prof["id"]]

    def test_login_session_logout(self, client) -> None:
        student = register(client, "student", "Fatima", "fatima@example.com")

        assert client.get(f"{API}/auth/session").status_code == 401
        assert (
            client.post(
                f"{API}/auth/login", json={"email": "fatima@example.com", "credential": "bad"}
            ).status_code
            == 401
        )

        response = client.post(
            f"{API}/auth/login", json={"email": "fatima@example.com", "credential": "secret"}
        )
        assert response.status_code == 200
        assert client.get(f"{API}/auth/session").json()["id"] == student["id"]

        client.post(f"{API}/auth/logout")
        assert client.get(f"{API}/auth/session").status_code == 401


class TestChannels:
    """Tests for channel endpoints."""

    def test_channel_lifecycle(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        channel = create_channel(client, prof["id"])

        assert channel["subscriber_count"] == 0
        assert channel["star_rating"] == 0.0
        assert channel["price"] == 50

        patched = client.patch(
            f"{API}/channels/{channel['id']}", json={"description": "Foundations"}
        )
        assert patched.json()["description"] == "Foundations"

        content = client.post(
            f"{API}/channels/{channel['id']}/content",
            json={"type": "document", "title": "Lecture 1", "url": "https://x/1.pdf"},
        )
        assert content.status_code == 201

        fetched = client.get(f"{API}/channels/{channel['id']}").json()
        assert [c["title"] for c in fetched["content"]] == ["Lecture 1"]

        listed = client.get(f"{API}/channels/by-professor/{prof['id']}").json()
        assert [c["id"] for c in listed] == [channel["id"]]

        assert client.delete(f"{API}/channels/{channel['id']}").json() == {"deleted": True}
        assert client.get(f"{API}/channels/{channel['id']}").status_code == 404

    def test_student_cannot_own_channel(self, client) -> None:
        student = register(client, "student", "Fatima", "fatima@example.com")

        response = client.post(
            f"{API}/channels",
            json={"professor_id": student["id"], "name": "Study group", "department": "AI"},
        )

        assert response.status_code == 404

    def test_search(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        create_channel(client, prof["id"], "Intro to AI")
        python = create_channel(client, prof["id"], "Python Basics")

        response = client.get(f"{API}/channels", params={"term": "python"})

        assert [c["id"] for c in response.json()] == [python["id"]]
        assert len(client.get(f"{API}/channels").json()) == 2


class TestSubscriptions:
    """Tests for subscription and reputation endpoints."""

    def test_subscribe_flow_and_recompute(self, client) -> None:
        """Test subscribe, repeat, then sweep over HTTP."""
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        student = register(client, "student", "Fatima", "fatima@example.com")
        channel = create_channel(client, prof["id"])
        url = f"{API}/subscriptions/channels/{channel['id']}/subscribe"

        first = client.post(url, json={"student_id": student["id"]}).json()
        second = client.post(url, json={"student_id": student["id"]}).json()

        assert first == {
            "outcome": "subscribed",
            "channel_id": channel["id"],
            "subscriber_count": 1,
        }
        assert second["outcome"] == "already_subscribed"
        assert second["subscriber_count"] == 1
        assert client.get(f"{API}/users/{prof['id']}").json()["stars"] == 5.0

        report = client.post(f"{API}/subscriptions/ratings/recompute").json()

        assert report["skipped"] is False
        assert report["channels_updated"] == 1
        assert report["channel_ratings"] == {channel["id"]: 3.0}
        assert client.get(f"{API}/users/{prof['id']}").json()["stars"] == 3.0

        consistency = client.get(f"{API}/subscriptions/consistency").json()
        assert consistency == {"consistent": True, "violations": []}

    def test_subscribe_not_found(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        channel = create_channel(client, prof["id"])

        response = client.post(
            f"{API}/subscriptions/channels/{channel['id']}/subscribe",
            json={"student_id": prof["id"]},
        )

        assert response.status_code == 404

    def test_unsubscribe(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        student = register(client, "student", "Fatima", "fatima@example.com")
        channel = create_channel(client, prof["id"])
        base = f"{API}/subscriptions/channels/{channel['id']}"

        client.post(f"{base}/subscribe", json={"student_id": student["id"]})
        left = client.post(f"{base}/unsubscribe", json={"student_id": student["id"]}).json()
        again = client.post(f"{base}/unsubscribe", json={"student_id": student["id"]}).json()

        assert left["outcome"] == "unsubscribed"
        assert left["subscriber_count"] == 0
        assert again["outcome"] == "not_subscribed"

    def test_follow_toggle_and_listings(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        student = register(client, "student", "Fatima", "fatima@example.com")
        channel = create_channel(client, prof["id"])
        url = f"{API}/subscriptions/professors/{prof['id']}/follow"

        assert client.post(url, json={"student_id": student["id"]}).json()["following"] is True
        following = client.get(f"{API}/subscriptions/students/{student['id']}/following").json()
        assert [p["id"] for p in following] == [prof["id"]]
        assert client.post(url, json={"student_id": student["id"]}).json()["following"] is False

        client.post(
            f"{API}/subscriptions/channels/{channel['id']}/subscribe",
            json={"student_id": student["id"]},
        )
        channels = client.get(f"{API}/subscriptions/students/{student['id']}/channels").json()
        subscribers = client.get(f"{API}/channels/{channel['id']}/subscribers").json()
        assert [c["id"] for c in channels] == [channel["id"]]
        assert [s["id"] for s in subscribers] == [student["id"]]


class TestMessagesAndAnnouncements:
    """Tests for messaging and announcement endpoints."""

    def test_conversation(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        student = register(client, "student", "Fatima", "fatima@example.com")

        client.post(
            f"{API}/messages",
            json={"sender_id": student["id"], "receiver_id": prof["id"], "body": "hello"},
        )
        client.post(
            f"{API}/messages",
            json={"sender_id": prof["id"], "receiver_id": student["id"], "body": "hi"},
        )

        history = client.get(
            f"{API}/messages/history",
            params={"user_a": prof["id"], "user_b": student["id"]},
        ).json()

        assert [m["body"] for m in history] == ["hello", "hi"]
        assert client.get(f"{API}/messages/conversations/{prof['id']}").json() == [
            student["id"]
        ]

    def test_invalid_participant(self, client) -> None:
        student = register(client, "student", "Fatima", "fatima@example.com")

        response = client.post(
            f"{API}/messages",
            json={"sender_id": student["id"], "receiver_id": str(uuid4()), "body": "hello"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_PARTICIPANT"

    def test_announcements(self, client) -> None:
        prof = register(client, "professor", "Ahmed Djamel", "ahmed@example.com")
        student = register(client, "student", "Fatima", "fatima@example.com")

        created = client.post(
            f"{API}/announcements",
            json={"professor_id": prof["id"], "title": "Reminder", "body": "Wednesday 10am"},
        )
        refused = client.post(
            f"{API}/announcements",
            json={"professor_id": student["id"], "title": "Hi", "body": "Hello"},
        )

        assert created.status_code == 201
        assert refused.status_code == 404
        listed = client.get(f"{API}/announcements/professors/{prof['id']}").json()
        assert [a["title"] for a in listed] == ["Reminder"]


class TestServiceLifecycle:
    """Tests for the lifespan, seeded data and health endpoint."""

    def test_health_reports_scheduler(self, platform) -> None:
        app.dependency_overrides[platform_dependency] = lambda: platform
        try:
            with TestClient(app) as client:
                body = client.get("/health").json()
        finally:
            app.dependency_overrides.clear()

        assert body["status"] == "healthy"
        assert body["scheduler_running"] is True
        assert body["held_locks"] == 0

    def test_seeded_platform_is_served(self, client, platform) -> None:
        ids = asyncio.run(seed_demo_data(platform))

        channels = client.get(f"{API}/channels").json()
        student = client.get(f"{API}/users/{ids['student1']}").json()

        assert len(channels) == 3
        assert student["subscribed_channels"] == [str(ids["ch1"])]
        assert client.get("/health").json()["users"] == 4

    def test_run_passes_log_level_to_uvicorn(self, monkeypatch) -> None:
        calls = []
        configured = Settings(_env_file=None, log_level="WARNING", service_port=9000)
        monkeypatch.setattr(main, "settings", configured)
        monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append(kwargs))

        main.run()

        [kwargs] = calls
        assert kwargs["log_level"] == "warning"
        assert kwargs["port"] == 9000
