"""
Application configuration for the draw-history cache.
Reads settings from environment variables and provides defaults.
"""

import json
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

# Load .env file if present (explicit path avoids python-dotenv auto-discovery issues on newer Python)
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"  # repo_root/.env if config/ is one level down
load_dotenv(dotenv_path=ENV_PATH, override=False)

ENV_PREFIX = "DRAWCACHE_"

DEFAULT_UPSTREAM_URL = "https://kbtpredictor.shop/API/1_min.php/api/webapi/GetNoaverageEmerdList"


def _env(name: str, default: str = "") -> str:
    return os.getenv(ENV_PREFIX + name, default)


def parse_optional_int(raw: Optional[str]) -> Optional[int]:
    """
    "" / "0" / unset -> None (policy disabled), otherwise a positive int.
    """
    if raw is None or not raw.strip():
        return None
    value = int(raw)
    return value if value > 0 else None


def parse_optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    value = float(raw)
    return value if value > 0 else None


def parse_extra_headers(raw: Optional[str]) -> Dict[str, str]:
    """
    Decode the EXTRA_HEADERS JSON blob into a str->str dict.

    Malformed input is reported and ignored so a bad env var never keeps the
    service from starting.
    """
    if not raw or not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        print(f"[CONFIG][WARN] ignoring EXTRA_HEADERS (not JSON): {exc}")
        return {}
    if not isinstance(payload, dict):
        print(f"[CONFIG][WARN] ignoring EXTRA_HEADERS (expected object, got {type(payload).__name__})")
        return {}
    return {str(k): str(v) for k, v in payload.items() if v is not None}


@dataclass
class AppSettings:
    """
    Settings for the upstream poller, the rolling cache and the HTTP surface.
    """

    # Upstream request
    UPSTREAM_URL: str = _env("UPSTREAM_URL", DEFAULT_UPSTREAM_URL)
    PAGE_SIZE: int = int(_env("PAGE_SIZE", "10"))
    TYPE_ID: int = int(_env("TYPE_ID", "1"))
    LANGUAGE: int = int(_env("LANGUAGE", "0"))
    SIGNATURE: str = _env("SIGNATURE", "")
    REQUEST_TIMEOUT: float = float(_env("REQUEST_TIMEOUT", "10.0"))
    EXTRA_HEADERS: Dict[str, str] = field(
        default_factory=lambda: parse_extra_headers(_env("EXTRA_HEADERS"))
    )

    # How often (in seconds) to poll the upstream
    POLL_INTERVAL: float = float(_env("POLL_INTERVAL", "12.0"))

    # Rolling cache policies; None disables the policy
    CACHE_CAPACITY: Optional[int] = parse_optional_int(_env("CACHE_CAPACITY", "21"))
    RETENTION_MINUTES: Optional[float] = parse_optional_float(_env("RETENTION_MINUTES"))

    # Query surface
    DEBUG_PREVIEW_CHARS: int = int(_env("DEBUG_PREVIEW_CHARS", "500"))
    HOST: str = _env("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "10000"))

    @property
    def retention_seconds(self) -> Optional[float]:
        if self.RETENTION_MINUTES is None:
            return None
        return self.RETENTION_MINUTES * 60.0


# Create a single config instance for import
settings = AppSettings()
