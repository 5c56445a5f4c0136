"""Configuration du tableau de bord lue depuis l'environnement."""
from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlparse

from stockboard.core.env_loader import load_env

_TRUE_VALUES = {"1", "true", "yes", "on", "y", "t"}
_FALSE_VALUES = {"0", "false", "no", "off", "n", "f"}

# Valeur d'exemple livrée dans .env.example, à traiter comme absente.
_PLACEHOLDER_URL = "your_supabase_project_url"


def _get_env_flag(name: str, default: bool = False) -> bool:
    """Retourne une valeur booléenne à partir d'une variable d'environnement."""

    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def _get_int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _get_str_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """Paramètres globaux lus depuis l'environnement."""

    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    STOCK_OWNER_COLUMN: str = "user_id"
    OFFLINE_MAX_ATTEMPTS: int = 3
    OFFLINE_RETRY_DELAY_SECONDS: float = 1.5
    CONNECTIVITY_PROBE_INTERVAL_SECONDS: float = 5.0
    CONNECTIVITY_PROBE_TIMEOUT_SECONDS: float = 3.0
    STOCKBOARD_DEBUG: bool = False

    @property
    def backend_configured(self) -> bool:
        return bool(
            self.SUPABASE_URL
            and self.SUPABASE_ANON_KEY
            and self.SUPABASE_URL != _PLACEHOLDER_URL
        )

    @property
    def backend_address(self) -> tuple[str, int] | None:
        """Hôte et port TCP du backend, utilisés par la sonde de connectivité."""
        if not self.backend_configured:
            return None
        parsed = urlparse(self.SUPABASE_URL)
        if not parsed.hostname:
            return None
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return parsed.hostname, port


def load_settings() -> Settings:
    load_env()
    return Settings(
        SUPABASE_URL=_get_str_env("SUPABASE_URL"),
        SUPABASE_ANON_KEY=_get_str_env("SUPABASE_ANON_KEY"),
        STOCK_OWNER_COLUMN=_get_str_env("STOCK_OWNER_COLUMN") or "user_id",
        OFFLINE_MAX_ATTEMPTS=_get_int_env("OFFLINE_MAX_ATTEMPTS", 3, minimum=1),
        OFFLINE_RETRY_DELAY_SECONDS=_get_float_env("OFFLINE_RETRY_DELAY_SECONDS", 1.5),
        CONNECTIVITY_PROBE_INTERVAL_SECONDS=_get_float_env(
            "CONNECTIVITY_PROBE_INTERVAL_SECONDS", 5.0
        ),
        CONNECTIVITY_PROBE_TIMEOUT_SECONDS=_get_float_env(
            "CONNECTIVITY_PROBE_TIMEOUT_SECONDS", 3.0
        ),
        STOCKBOARD_DEBUG=_get_env_flag("STOCKBOARD_DEBUG", default=False),
    )


settings = load_settings()
