# =============================================================================
# wedding_core/config.py
# Application Settings
# =============================================================================
"""
Settings for the REST client, caches and Firestore connection.

Resolution order for every field:
    1. [wedding] table in .streamlit/secrets.toml
    2. WEDDING_<FIELD> environment variable
    3. Built-in default

Expected secrets.toml format:
    [wedding]
    api_base_url = "https://backendv2-nasy.onrender.com/api"
    request_timeout = 30
    firebase_project_id = "weddingmanagement-e9c30"
    firebase_credentials_path = "service-account.json"
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import streamlit as st

from wedding_core.errors import ConfigurationError
from wedding_core.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "WEDDING_"


@dataclass
class AppSettings:
    """Runtime configuration shared by every service"""
    api_base_url: str = "https://backendv2-nasy.onrender.com/api"
    request_timeout: float = 30.0
    upload_timeout: float = 60.0
    request_cache_ttl_ms: int = 2 * 60 * 1000
    login_path: str = "/host/login"
    offline_cache_path: str = str(Path("local_data") / "offline_cache.json")
    firebase_project_id: Optional[str] = None
    firebase_credentials_path: Optional[str] = None
    firestore_emulator_host: Optional[str] = None

    @property
    def api_host(self) -> str:
        """Host part of the API base URL (used for connectivity checks)"""
        from urllib.parse import urlparse
        return urlparse(self.api_base_url).hostname or ""


def _read_secrets() -> Dict[str, Any]:
    """Return the [wedding] secrets table, or {} when none is configured."""
    try:
        if hasattr(st, "secrets") and "wedding" in st.secrets:
            return dict(st.secrets["wedding"])
    except Exception as e:
        # st.secrets raises when no secrets.toml exists at all
        logger.debug(f"No Streamlit secrets available: {e}")
    return {}


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Convert a raw secret/env value to the type of the field default."""
    if raw is None or raw == "":
        return default
    if isinstance(default, bool):
        return str(raw).lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Invalid value for {name}: {raw!r}",
                config_key=name,
                expected_type="int",
            )
    if isinstance(default, float):
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Invalid value for {name}: {raw!r}",
                config_key=name,
                expected_type="float",
            )
    return str(raw)


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> AppSettings:
    """
    Build AppSettings from secrets, environment and defaults.

    Args:
        overrides: Explicit values that win over every other source

    Returns:
        Fully resolved AppSettings
    """
    secrets = _read_secrets()
    overrides = overrides or {}
    values: Dict[str, Any] = {}

    for f in fields(AppSettings):
        default = f.default
        if f.name in overrides:
            raw = overrides[f.name]
        elif f.name in secrets:
            raw = secrets[f.name]
        else:
            raw = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
        values[f.name] = _coerce(f.name, raw, default)

    # Standard Firestore SDK variable is honoured too
    if not values["firestore_emulator_host"]:
        values["firestore_emulator_host"] = os.getenv("FIRESTORE_EMULATOR_HOST") or None

    settings = AppSettings(**values)
    logger.debug(f"Settings loaded for API {settings.api_base_url}")
    return settings
