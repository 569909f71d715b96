"""Configuration constants and .env loading.

WHY: Centralizes the values a deployment changes (where the persistence
service lives, how long to wait for it, how chatty to be) so they are
easy to find and override without touching pipeline code.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values read from the environment with defaults. The
load_loader_url() function gives a clear error when the service URL is
missing.

RULES:
- COMPILATIONS_RESOURCE is the resource kind sent to the loader
- DB_LOADER_URL has no default; callers decide what to do without it
- DB_LOADER_TOKEN is optional (unauthenticated services are fine)
- All other defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Resource kinds
# ---------------------------------------------------------------------------

COMPILATIONS_RESOURCE = "compilations"
"""Resource kind for normalized compilation records."""

# ---------------------------------------------------------------------------
# Loader service
# ---------------------------------------------------------------------------

DB_LOADER_TIMEOUT_S = float(os.getenv("DB_LOADER_TIMEOUT_S", "60"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()


def loader_configured() -> bool:
    """Return True when DB_LOADER_URL is set to a non-empty value."""
    return bool(os.getenv("DB_LOADER_URL", "").strip())


def load_loader_url() -> str:
    """Load the persistence service GraphQL URL from the environment.

    RULES:
    - Raises ValueError if the URL is missing or empty
    - Never returns a default/placeholder value
    """
    url = os.getenv("DB_LOADER_URL", "").strip()
    if not url:
        raise ValueError(
            "Persistence service URL not configured. "
            "Add DB_LOADER_URL to the .env file or pass --loader-url."
        )
    return url


def load_loader_token() -> Optional[str]:
    """Return the bearer token for the persistence service, or None."""
    token = os.getenv("DB_LOADER_TOKEN", "").strip()
    return token or None
