"""Provider dispatch for join credentials.

Native rooms get a LiveKit access token minted per participant. Link
providers (youtube, meet, custom) hand back the stored URL verbatim; those
providers run their own access control.
"""

from datetime import datetime, timedelta
from urllib.parse import urlsplit

import orjson
from loguru import logger

from liveclass.schemas import LiveClass, Provider, ProviderConfig
from liveclass.services.integrations.livekit_service import LivekitService
from liveclass.utils.app_errors import InvalidStateError, ProviderConfigError
from liveclass.utils.clock import Clock

from .live_class_models import JoinCredential

ROLE_HOST = "host"
ROLE_AUDIENCE = "audience"

# Link providers that must have a URL from the moment they are created
URL_REQUIRED_AT_CREATE = frozenset({Provider.MEET, Provider.CUSTOM})


def is_absolute_http_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def validate_provider_config(
    provider: Provider,
    provider_config: ProviderConfig,
    going_live: bool = False,
) -> None:
    """Fail fast on a provider configuration that could never produce a credential.

    Args:
        provider: Selected provider
        provider_config: Instructor-supplied configuration
        going_live: True when validating at start, where youtube also needs its URL

    Raises:
        ProviderConfigError: If a required field is missing or the URL is malformed
    """
    if not provider.is_link:
        return

    url = (provider_config.url or "").strip()
    if not url:
        if provider in URL_REQUIRED_AT_CREATE or going_live:
            raise ProviderConfigError(f"Provider '{provider}' requires a url")
        return

    if not is_absolute_http_url(url):
        raise ProviderConfigError(f"Provider '{provider}' url must be an absolute http(s) URL: {url}")


class CredentialIssuer:
    """Issues the artifact a participant uses to reach the provider."""

    def __init__(self, livekit: LivekitService, clock: Clock, grace_minutes: int = 30):
        self.livekit = livekit
        self.clock = clock
        self.grace = timedelta(minutes=grace_minutes)

    def token_deadline(self, live_class: LiveClass) -> datetime:
        """Latest instant a native room token may be valid for."""
        return live_class.scheduled_at + timedelta(minutes=live_class.duration_minutes) + self.grace

    def issue(self, live_class: LiveClass, user_id: str) -> JoinCredential:
        role = ROLE_HOST if user_id == live_class.instructor_id else ROLE_AUDIENCE
        if live_class.provider.is_link:
            return self._issue_link(live_class, role)
        return self._issue_room_token(live_class, user_id, role)

    def _issue_link(self, live_class: LiveClass, role: str) -> JoinCredential:
        url = (live_class.provider_config.url or "").strip()
        if not url:
            raise ProviderConfigError(
                f"Live class {live_class.live_class_id} has no url for provider '{live_class.provider}'"
            )
        return JoinCredential(
            live_class_id=live_class.live_class_id,
            provider=live_class.provider,
            role=role,
            url=url,
        )

    def _issue_room_token(self, live_class: LiveClass, user_id: str, role: str) -> JoinCredential:
        room_id = live_class.provider_config.room_id
        if not room_id:
            raise ProviderConfigError(f"Live class {live_class.live_class_id} has no room_id")

        expires_at = self.token_deadline(live_class)
        ttl = expires_at - self.clock.now()
        if ttl <= timedelta(0):
            raise InvalidStateError(
                f"Join window for live class {live_class.live_class_id} closed at {expires_at.isoformat()}"
            )

        settings = live_class.settings
        is_host = role == ROLE_HOST
        metadata = orjson.dumps(
            {
                "live_class_id": live_class.live_class_id,
                "role": role,
                "settings": settings.model_dump(),
            }
        ).decode()

        token = self.livekit.create_room_token(
            identity=user_id,
            room=room_id,
            ttl=ttl,
            metadata=metadata,
            room_admin=is_host,
            can_publish=is_host,
            can_subscribe=True,
            can_publish_data=is_host or settings.allow_chat or settings.allow_hand_raise,
        )
        logger.debug(
            f"Issued {role} token for user {user_id} in room {room_id} "
            f"(live class {live_class.live_class_id}, expires {expires_at.isoformat()})"
        )
        return JoinCredential(
            live_class_id=live_class.live_class_id,
            provider=live_class.provider,
            role=role,
            room_id=room_id,
            token=token,
            server_url=self.livekit.server_url,
            expires_at=expires_at,
        )
