from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from connectors.utils import new_session, timeout_pair

from .config import HubSpotConfig
from .constants import API_KEY_PARAM
from .errors import AuthorizationError, ConfigurationError, HubSpotError
from .events import info

OAUTH_SERVICE_URL_ENV = "HUBSPOT_OAUTH_SERVICE_URL"


@dataclass(frozen=True)
class Credentials:
    """
    Exactly one credential mode is applied per request: the bearer token when
    present, else the API key as a query parameter.
    """
    api_key: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def mode(self) -> str:
        if self.access_token:
            return "bearer"
        if self.api_key:
            return "api_key"
        return "none"

    def apply(
        self,
        headers: Dict[str, str],
        params: List[Tuple[str, str]],
    ) -> Tuple[Dict[str, str], List[Tuple[str, str]]]:
        out_headers = dict(headers)
        out_params = list(params)
        if self.access_token:
            out_headers["Authorization"] = f"Bearer {self.access_token}"
        elif self.api_key:
            # The legacy endpoints expect the key first in the query string.
            out_params.insert(0, (API_KEY_PARAM, self.api_key))
        return out_headers, out_params


@dataclass(frozen=True)
class OAuthInfo:
    access_token: str
    instance_url: Optional[str] = None


class OAuthTokenRefresher:
    """
    Asks the host's OAuth service for a current access token.

    The service owns the OAuth flow and refresh tokens; this side only reads
    `{"accessToken": ..., "instanceURL": ...}` back.
    """

    def __init__(
        self,
        *,
        service_url: str,
        provider: str,
        credential_id: str,
        session_factory: Callable[[], requests.Session] = new_session,
        timeout: Optional[float] = None,
    ):
        self.service_url = service_url.rstrip("/")
        self.provider = provider
        self.credential_id = credential_id
        self._session_factory = session_factory
        self._timeout = timeout_pair(timeout)

    @property
    def credential_url(self) -> str:
        return (
            f"{self.service_url}/v1/oauth/provider/{quote(self.provider, safe='')}"
            f"/credential/{quote(self.credential_id, safe='')}"
        )

    def refresh(self) -> OAuthInfo:
        url = self.credential_url
        with self._session_factory() as session:
            try:
                resp = session.request(method="GET", url=url, timeout=self._timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                raise HubSpotError(f"OAuth token service unreachable at {url}: {e}") from e

        if resp.status_code in (401, 403):
            raise AuthorizationError(
                f"OAuth token service refused credential '{self.credential_id}'",
                status_code=resp.status_code,
            )
        if not 200 <= resp.status_code < 300:
            raise HubSpotError(f"OAuth token service returned HTTP {resp.status_code} for {url}")

        try:
            data = resp.json()
        except ValueError as e:
            raise HubSpotError(f"OAuth token service returned non-JSON body for {url}") from e

        token = data.get("accessToken") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise HubSpotError(f"OAuth token service response has no accessToken for provider '{self.provider}'")

        info("auth.token.refreshed", provider=self.provider)
        return OAuthInfo(access_token=token, instance_url=data.get("instanceURL"))


def refresher_for(config: HubSpotConfig) -> Optional[OAuthTokenRefresher]:
    if not config.uses_oauth_service:
        return None
    service_url = config.oauth_service_url or os.getenv(OAUTH_SERVICE_URL_ENV)
    if not service_url:
        raise ConfigurationError(
            f"oauth_provider is set but no token service URL (oauth_service_url or {OAUTH_SERVICE_URL_ENV})"
        )
    return OAuthTokenRefresher(
        service_url=service_url,
        provider=str(config.oauth_provider),
        credential_id=str(config.oauth_credential_id),
    )


def resolve_credentials(config: HubSpotConfig, refresher: Optional[OAuthTokenRefresher] = None) -> Credentials:
    """
    Token precedence: explicit access_token, then a token from the OAuth service,
    then the API key.
    """
    if config.access_token:
        return Credentials(api_key=config.api_key, access_token=config.access_token)

    refresher = refresher or refresher_for(config)
    if refresher is not None:
        return Credentials(api_key=config.api_key, access_token=refresher.refresh().access_token)

    return Credentials(api_key=config.api_key)
