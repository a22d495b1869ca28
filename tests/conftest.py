"""Shared fixtures for moderation server tests."""

import base64
import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from moderation_server.config import Settings
from moderation_server.lib.registry import ModeratorRegistry
from moderation_server.lib.store import ModerationStore
from moderation_server.main import create_app

MODERATOR_ID = 22358445
START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


def encode_payload(payload: Any) -> str:
    """Encode a request payload the way game clients do."""
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def decode_body(text: str) -> Any:
    """Decode an envelope response body."""
    return json.loads(base64.b64decode(text).decode("utf-8"))


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, moderator_ids={MODERATOR_ID})


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(settings: Settings, clock: FakeClock) -> ModerationStore:
    return ModerationStore(ModeratorRegistry(settings.moderator_ids), settings, clock=clock)


@pytest.fixture()
def client(settings: Settings, store: ModerationStore):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client
