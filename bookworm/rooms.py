from __future__ import annotations

from datetime import timedelta
from typing import Dict, Optional

from livekit import api

from config.settings import Settings, get_settings


def create_room_token(
    room_name: str,
    participant_name: str,
    settings: Optional[Settings] = None,
) -> Dict[str, str]:
    """Issue a LiveKit access token that lets one participant join one room."""
    settings = settings or get_settings()
    if not room_name or not participant_name:
        raise ValueError("room_name and participant_name are required")

    token = (
        api.AccessToken(settings.livekit_api_key, settings.livekit_api_secret)
        .with_identity(participant_name)
        .with_name(participant_name)
        .with_ttl(timedelta(minutes=settings.livekit_token_ttl_minutes))
        .with_grants(
            api.VideoGrants(
                room_join=True,
                room=room_name,
                can_publish=True,
                can_subscribe=True,
            )
        )
        .to_jwt()
    )
    return {"token": token, "url": settings.livekit_url}
