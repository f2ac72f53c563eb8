"""LiveKit helper service.

This module provides a thin wrapper around the `livekit-api` package for
minting native room access tokens.

Based on the official LiveKit Python SDK:
https://github.com/livekit/python-sdks

Usage:
    from liveclass.services.integrations.livekit_service import LivekitService

    token = LivekitService().create_room_token(
        identity="user-123",
        room="ro_01h...",
        ttl=timedelta(minutes=90),
    )
"""

from __future__ import annotations

from datetime import timedelta

from livekit import api
from loguru import logger

from liveclass.app_config import AppEnvironConfig, get_app_environ_config
from liveclass.utils.app_errors import ProviderConfigError


class LivekitService:
    """Service wrapper for LiveKit access token generation."""

    def __init__(self, cfg: AppEnvironConfig | None = None) -> None:
        self._cfg = cfg or get_app_environ_config()
        self._demo_mode = bool(self._cfg.DEMO_MODE)
        logger.info("LivekitService initialized")

    def create_room_token(
        self,
        identity: str,
        room: str,
        ttl: timedelta,
        name: str | None = None,
        metadata: str | None = None,
        room_admin: bool = False,
        can_publish: bool = False,
        can_subscribe: bool = True,
        can_publish_data: bool = True,
    ) -> str:
        """Create and return a LiveKit JWT access token scoped to one room.

        No room lookups are performed: capacity is enforced by the live class
        roster, not by the media server.

        Args:
            identity: Unique identity for the participant
            room: Room name to grant access to
            ttl: Token lifetime
            name: Display name for the participant (optional)
            metadata: Custom metadata string (optional)
            room_admin: Grant admin privileges in the room (default: False)
            can_publish: Grant permission to publish tracks (default: False)
            can_subscribe: Grant permission to subscribe to tracks (default: True)
            can_publish_data: Grant permission to publish data (default: True)

        Returns:
            JWT token string

        Raises:
            ProviderConfigError: If LIVEKIT_API_KEY or LIVEKIT_API_SECRET is not configured
        """
        if self._demo_mode:
            # Demo-safe token: deterministic placeholder (NOT a real JWT).
            return f"DEMO_RTC_TOKEN::{identity}::{room}"

        api_key = self._cfg.LIVEKIT_API_KEY
        api_secret = self._cfg.LIVEKIT_API_SECRET
        if not api_key or not api_secret:
            logger.error("LIVEKIT_API_KEY or LIVEKIT_API_SECRET not configured")
            raise ProviderConfigError(
                "Native room credentials must be configured. Set them in env.local or environment variables."
            )

        logger.info(f"Creating LiveKit access token for identity={identity}, room={room}")

        token = api.AccessToken(api_key, api_secret).with_identity(identity).with_ttl(ttl)

        if name:
            token = token.with_name(name)

        grants = api.VideoGrants(
            room_join=True,
            room=room,
            room_admin=room_admin,
            can_publish=can_publish,
            can_subscribe=can_subscribe,
            can_publish_data=can_publish_data,
        )
        token = token.with_grants(grants)

        if metadata:
            token = token.with_metadata(metadata)

        jwt_token = token.to_jwt()
        logger.debug(f"Successfully created LiveKit access token for identity={identity}")
        return jwt_token

    @property
    def server_url(self) -> str | None:
        return self._cfg.LIVEKIT_URL
