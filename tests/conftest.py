import os
from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

# Settings() 需要 JWT_SECRET_KEY；測試中一律明確傳入設定
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from probid.core.config import Settings  # noqa: E402
from probid.main import create_app  # noqa: E402
from probid.services.notification_service import (  # noqa: E402
    EmailNotice,
    NotificationService,
    get_notification_service,
)


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=f"sqlite+aiosqlite:///{(tmp_path / 'test.db').as_posix()}",
        JWT_SECRET_KEY="test-secret-key",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def sent_notices() -> List[EmailNotice]:
    return []


@pytest.fixture
def client(settings, sent_notices):
    app = create_app(settings)

    class RecordingNotificationService(NotificationService):
        def deliver(self, notice: EmailNotice) -> None:
            sent_notices.append(notice)

    def recording_notifier(background_tasks: BackgroundTasks):
        return RecordingNotificationService(settings, background_tasks)

    app.dependency_overrides[get_notification_service] = recording_notifier

    with TestClient(app) as test_client:
        yield test_client


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """測試用的小工具：註冊使用者、建立案件與出價"""

    def __init__(self, client: TestClient):
        self.client = client

    def register(self, name: str, role: str, email: str = None, password: str = "secret123") -> dict:
        email = email or f"{name.lower()}@example.com"
        res = self.client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert res.status_code == 201, res.text
        body = res.json()
        return {"token": body["token"], "id": body["user"]["id"], "email": email, "headers": auth(body["token"])}

    def create_project(self, buyer: dict, **fields) -> dict:
        payload = {
            "title": "Landing page",
            "description": "Build a landing page for our product",
            "budget": {"min": 100, "max": 200},
            "deadline": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        }
        payload.update(fields)
        res = self.client.post("/projects", json=payload, headers=buyer["headers"])
        assert res.status_code == 201, res.text
        return res.json()

    def create_bid(self, seller: dict, project_id: str, amount=150, delivery_time=3, message="I can do it") -> dict:
        res = self.client.post(
            "/bids",
            json={
                "project_id": project_id,
                "amount": amount,
                "delivery_time": delivery_time,
                "message": message,
            },
            headers=seller["headers"],
        )
        assert res.status_code == 201, res.text
        return res.json()

    def select_bid(self, buyer: dict, project_id: str, bid: dict):
        return self.client.post(
            f"/projects/{project_id}/select-bid",
            json={"bid_id": bid["id"], "seller_id": bid["seller_id"]},
            headers=buyer["headers"],
        )


@pytest.fixture
def api(client):
    return Api(client)


@pytest.fixture
def buyer(api):
    return api.register("Bob", "BUYER")


@pytest.fixture
def seller(api):
    return api.register("Sally", "SELLER")
