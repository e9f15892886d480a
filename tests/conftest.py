from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from chatvision.clients import AIGateway
from chatvision.config import Settings
from chatvision.database import RecordStore
from chatvision.main import create_app
from chatvision.storage import FileStorage


class FakeResponses:
    def __init__(self):
        self.calls = []
        self.reply = "Hello from the model"
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(output_text=self.reply, output=[])


class FakeOpenAI:
    def __init__(self):
        self.responses = FakeResponses()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key="test-key",
        data_dir=tmp_path / "data",
        static_dir=None,
        jwt_secret="test-secret",
        enforce_auth=False,
    )


@pytest.fixture
def store(settings):
    return RecordStore(settings.data_dir)


@pytest.fixture
def storage(store):
    return FileStorage(store)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def gateway(settings, fake_openai):
    return AIGateway(settings, client=fake_openai)


@pytest.fixture
def app(settings, storage, gateway):
    return create_app(settings, storage=storage, gateway=gateway)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def registered(client):
    resp = client.post("/api/register", json={"username": "ada", "password": "lovelace"})
    assert resp.status_code == 200
    return resp.json()["user"]
