from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1"
_DEFAULT_MODEL = "google/gemini-2.5-flash"
_DEFAULT_TIMEOUT = 60.0
SIMPLIFICATOR_DIR = Path.home() / ".simplificator"
_DEFAULT_CONFIG_PATH = SIMPLIFICATOR_DIR / "simplificator.json"
_DEFAULT_DB_PATH = SIMPLIFICATOR_DIR / "reviews.db"


@dataclass
class GatewayConfig:
    gateway_url: str
    model: str
    api_key: str | None
    timeout: float = _DEFAULT_TIMEOUT
    db_path: str = str(_DEFAULT_DB_PATH)

    @property
    def base_url(self) -> str:
        return self.gateway_url.rstrip("/")


def load_config(config_path: str | None = None) -> GatewayConfig:
    """Load config from ~/.simplificator/simplificator.json, falling back to env vars.

    Config file fields:
    - gateway.url (str, default Lovable AI gateway)
    - gateway.model (str, default "google/gemini-2.5-flash")
    - gateway.timeout (float seconds, default 60)
    - gateway.auth.token (str, optional)
    - storage.db_path (str, default ~/.simplificator/reviews.db)

    Env var overrides:
    - SIMPLIFICATOR_GATEWAY_URL
    - SIMPLIFICATOR_MODEL
    - SIMPLIFICATOR_TIMEOUT
    - SIMPLIFICATOR_API_KEY / LOVABLE_API_KEY
    - SIMPLIFICATOR_DB_PATH

    Returns GatewayConfig. Never raises — uses defaults if config missing.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH

    gateway_url = _DEFAULT_GATEWAY_URL
    model = _DEFAULT_MODEL
    timeout = _DEFAULT_TIMEOUT
    api_key: str | None = None
    db_path = str(_DEFAULT_DB_PATH)

    if path.exists():
        try:
            data = json.loads(path.read_text())
            gateway_section = data.get("gateway", {})
            gateway_url = str(gateway_section.get("url", _DEFAULT_GATEWAY_URL))
            model = str(gateway_section.get("model", _DEFAULT_MODEL))
            timeout = float(gateway_section.get("timeout", _DEFAULT_TIMEOUT))
            api_key = gateway_section.get("auth", {}).get("token", None)
            db_path = str(data.get("storage", {}).get("db_path", db_path))
        except Exception as exc:
            logger.warning("Failed to parse config file %s: %s — using defaults", path, exc)
            gateway_url = _DEFAULT_GATEWAY_URL
            model = _DEFAULT_MODEL
            timeout = _DEFAULT_TIMEOUT
            api_key = None
            db_path = str(_DEFAULT_DB_PATH)
    else:
        logger.info("Config file not found at %s — using defaults", path)

    # Env var overrides
    gateway_url = os.environ.get("SIMPLIFICATOR_GATEWAY_URL", gateway_url)
    model = os.environ.get("SIMPLIFICATOR_MODEL", model)
    db_path = os.environ.get("SIMPLIFICATOR_DB_PATH", db_path)

    env_timeout = os.environ.get("SIMPLIFICATOR_TIMEOUT")
    if env_timeout is not None:
        try:
            timeout = float(env_timeout)
        except ValueError:
            logger.warning("Invalid SIMPLIFICATOR_TIMEOUT value %r — using %s", env_timeout, timeout)

    env_key = os.environ.get("SIMPLIFICATOR_API_KEY") or os.environ.get("LOVABLE_API_KEY")
    if env_key is not None:
        api_key = env_key

    return GatewayConfig(
        gateway_url=gateway_url,
        model=model,
        api_key=api_key,
        timeout=timeout,
        db_path=db_path,
    )
