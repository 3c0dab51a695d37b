# groupie_tracker/spotify/auth.py

import logging
import threading
import time
from typing import Callable, Optional

import requests

from ..utils.config_loader import ConfigError, is_placeholder
from .exceptions import AuthError
from .models import AccessToken

SPOTIFY_AUTH_URL = "https://accounts.spotify.com/api/token"
DEFAULT_TOKEN_TTL = 3600


class TokenManager:
    """Client-credentials token holder for the Spotify Web API.

    The held token is replaced, never mutated. Reads and writes of it are
    serialized with a lock; the request to the token endpoint is made
    outside the lock, so two threads racing on an expired token may both
    fetch one and the last one stored wins.
    """

    def __init__(self, config: dict, logger: logging.Logger,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.logger = logger
        self.client_id = config.get('client_id', '')
        self.client_secret = config.get('client_secret', '')
        self.timeout = config.get('request_timeout', 10)
        self.safety_margin = config.get('token_safety_margin', 60)
        self.auth_url = config.get('auth_url', SPOTIFY_AUTH_URL)
        self.session = session or requests.Session()
        self.clock = clock
        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return not (is_placeholder(self.client_id) or is_placeholder(self.client_secret))

    def ensure_valid_token(self) -> AccessToken:
        """Return the held token, or fetch a new one when it is missing or about to expire"""
        if not self.is_configured:
            raise ConfigError(
                "Spotify credentials are not configured. "
                "Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET.",
                provider_name="spotify",
            )

        with self._lock:
            token = self._token
            if token is not None and token.is_usable(self.clock(), self.safety_margin):
                return token

        token = self._request_token()
        with self._lock:
            self._token = token
        return token

    def invalidate(self, token: Optional[AccessToken] = None) -> None:
        """Drop the held token; when given, only if it is still the held one"""
        with self._lock:
            if token is None or self._token == token:
                self._token = None
                self.logger.debug("Spotify access token invalidated")

    def _request_token(self) -> AccessToken:
        self.logger.debug("Requesting new Spotify access token")
        try:
            response = self.session.post(
                self.auth_url,
                data={'grant_type': 'client_credentials'},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.logger.error(f"Spotify token request failed: {str(e)}")
            raise AuthError(reason=f"token request failed: {e}")

        if not 200 <= response.status_code < 300:
            self.logger.error(f"Spotify token endpoint returned HTTP {response.status_code}")
            raise AuthError(status=response.status_code, body=response.text)

        try:
            payload = response.json()
        except ValueError:
            raise AuthError(status=response.status_code, reason="malformed token response")

        value = payload.get('access_token') if isinstance(payload, dict) else None
        if not value:
            raise AuthError(status=response.status_code, reason="empty token")

        try:
            expires_in = int(payload.get('expires_in') or DEFAULT_TOKEN_TTL)
        except (TypeError, ValueError):
            expires_in = DEFAULT_TOKEN_TTL
        if expires_in <= 0:
            expires_in = DEFAULT_TOKEN_TTL

        self.logger.info(f"Obtained Spotify access token (expires in {expires_in}s)")
        return AccessToken(value=value, expires_at=self.clock() + expires_in)
