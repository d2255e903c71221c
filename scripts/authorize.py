"""
Authorize — one-time OAuth consent to obtain a refresh token.

Step 1, print the consent URL:
    python scripts/authorize.py
Step 2, after approving, copy the ``code`` query parameter Google appended to
the redirect URI and exchange it:
    python scripts/authorize.py --code 4/0Ab...

The printed refresh_token goes into GOOGLE_REFRESH_TOKEN (e.g. in .env).
"""
from __future__ import annotations

import argparse
import logging
from typing import Any, Optional

from google_workspace_apis.auth import exchange_code, get_oauth_url
from google_workspace_apis.base import BaseScript
from google_workspace_apis.config import load_client_credentials
from google_workspace_apis.scopes import ALL_SCOPES, scope_urls


class Authorize(BaseScript):
    """Print the Google consent URL, or exchange an authorization code for tokens."""

    def __init__(self, log_level: int = logging.INFO, code: Optional[str] = None) -> None:
        super().__init__(log_level=log_level)
        self.code = code

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--code", help="Authorization code from the redirect")

    def run(self) -> dict[str, Any]:
        creds = load_client_credentials()
        if not creds.redirect_uri:
            raise ValueError("GOOGLE_REDIRECT_URI not configured")

        if not self.code:
            self.logger.info("Requesting %d scope(s)", len(ALL_SCOPES))
            return {
                "auth_url": get_oauth_url(creds.client_id, creds.redirect_uri, ALL_SCOPES),
                "scopes": scope_urls(ALL_SCOPES),
            }

        token = exchange_code(self.code, creds)
        return {
            "refresh_token": token.refresh_token,
            "expires_at": token.expiry.isoformat(),
            "scope": token.scope,
        }


if __name__ == "__main__":
    Authorize.main()
