"""
Loading ClientCredentials from the environment or a client-secrets file.

Nothing in the package calls these implicitly; scripts and applications opt in.

Environment variables (a .env file is honoured via python-dotenv):
    GOOGLE_CLIENT_ID         required
    GOOGLE_CLIENT_SECRET     required
    GOOGLE_REDIRECT_URI      optional
    GOOGLE_REFRESH_TOKEN     optional (needed for auto-refresh)
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from .models import ClientCredentials

PathLike = Union[str, Path]


def _require(name: str) -> str:
    value = os.environ.get(name, "")
    if not value:
        raise ValueError(f"{name} not configured")
    return value


def load_client_credentials(env_file: Optional[PathLike] = None) -> ClientCredentials:
    """
    Build ClientCredentials from GOOGLE_* environment variables.

    ``env_file`` defaults to the nearest .env at or above the current working
    directory; values already present in the environment win over the file.
    """
    if env_file is not None:
        load_dotenv(Path(env_file).expanduser())
    else:
        # search from the working directory, not from this installed module
        load_dotenv(find_dotenv(usecwd=True))

    return ClientCredentials(
        client_id=_require("GOOGLE_CLIENT_ID"),
        client_secret=_require("GOOGLE_CLIENT_SECRET"),
        redirect_uri=os.environ.get("GOOGLE_REDIRECT_URI", ""),
        refresh_token=os.environ.get("GOOGLE_REFRESH_TOKEN", ""),
    )


def load_client_secrets_file(path: PathLike, refresh_token: str = "") -> ClientCredentials:
    """
    Read the client secrets JSON downloaded from Google Cloud Console.

    Handles both "web" and "installed" application types as well as a flat
    dict; the first redirect URI is used.
    """
    secrets_path = Path(path).expanduser()
    if not secrets_path.exists():
        raise FileNotFoundError(f"Google credentials file not found: {secrets_path}")
    with open(secrets_path, encoding="utf-8") as f:
        config = json.load(f)

    if "web" in config:
        config = config["web"]
    elif "installed" in config:
        config = config["installed"]

    for key in ("client_id", "client_secret"):
        if not config.get(key):
            raise ValueError(f"{key} missing from {secrets_path}")

    redirect_uris = config.get("redirect_uris") or [""]
    return ClientCredentials(
        client_id=config["client_id"],
        client_secret=config["client_secret"],
        redirect_uri=redirect_uris[0],
        refresh_token=refresh_token,
    )
