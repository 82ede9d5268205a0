import pytest
from livekit import api

from bookworm.rooms import create_room_token
from config.settings import Settings


@pytest.fixture
def room_settings():
    settings = Settings()
    settings.livekit_api_key = "devkey"
    settings.livekit_api_secret = "s" * 40
    settings.livekit_url = "ws://livekit.test:7880"
    return settings


def test_room_token_grants_join_for_one_room(room_settings):
    issued = create_room_token("ai-conversation-room", "user-abc123", room_settings)

    assert issued["url"] == "ws://livekit.test:7880"
    claims = api.TokenVerifier("devkey", "s" * 40).verify(issued["token"])
    assert claims.identity == "user-abc123"
    assert claims.video.room == "ai-conversation-room"
    assert claims.video.room_join is True
    assert claims.video.can_publish is True


@pytest.mark.parametrize("room,participant", [("", "user"), ("room", "")])
def test_room_token_requires_names(room_settings, room, participant):
    with pytest.raises(ValueError):
        create_room_token(room, participant, room_settings)
