"""
OAuth2 helpers: consent URL and authorization-code exchange.

The refresh-token grant itself lives in GoogleClient; this module covers the
one-time steps that produce the refresh token in the first place.

Usage:
    url = get_oauth_url(creds.client_id, creds.redirect_uri, [Scope.CALENDAR])
    # ... user consents, Google redirects to redirect_uri?code=...
    token = exchange_code(code, creds)
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import requests
from google_auth_oauthlib.flow import Flow
from oauthlib.oauth2 import OAuth2Error

from .errors import AuthError, NetworkError
from .models import AccessToken, ClientCredentials
from .scopes import scope_urls

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _flow(
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    scopes: Optional[Iterable] = None,
) -> Flow:
    client_config = {
        "web": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [redirect_uri],
        }
    }
    # No PKCE: the URL and the code exchange may happen in different processes.
    return Flow.from_client_config(
        client_config,
        scopes=scope_urls(scopes) if scopes is not None else None,
        redirect_uri=redirect_uri,
        autogenerate_code_verifier=False,
    )


def get_oauth_url(
    client_id: str,
    redirect_uri: str,
    scopes: Iterable,
    state: Optional[str] = None,
) -> str:
    """
    Return the Google consent screen URL for the given scopes.

    Requests offline access and forces the consent prompt so that Google
    issues a refresh token every time.
    """
    flow = _flow(client_id, "", redirect_uri, scopes)
    kwargs = {"access_type": "offline", "prompt": "consent"}
    if state is not None:
        kwargs["state"] = state
    url, _ = flow.authorization_url(**kwargs)
    return url


def exchange_code(code: str, credentials: ClientCredentials) -> AccessToken:
    """
    Exchange an authorization code for an access token (and refresh token).
    """
    flow = _flow(credentials.client_id, credentials.client_secret, credentials.redirect_uri)
    try:
        token = flow.fetch_token(code=code)
    except OAuth2Error as exc:
        raise AuthError(f"authorization code exchange failed: {exc.description or exc.error}") from exc
    except requests.RequestException as exc:
        raise NetworkError(f"token endpoint unreachable: {exc}") from exc

    access_token = AccessToken.from_token_response(token)
    if not access_token.refresh_token:
        logger.warning(
            "Token response for client %s carried no refresh token; "
            "auto-refresh will not be possible",
            credentials.client_id,
        )
    logger.info("Exchanged authorization code for client %s", credentials.client_id)
    return access_token
