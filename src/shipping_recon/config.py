from __future__ import annotations
import argparse
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_EOM_URL = "https://ccom-shipping-dates-pdp-service.ecomm.cencosud.com/shipping-dates-pdp/v1/shipping-dates"
DEFAULT_GIV_BASE_URL = "https://be-paris-backend-cl-ms-api.ecomm.cencosud.com"


class ConfigError(ValueError):
    """Raised when connection or batching settings are missing or malformed."""


@dataclass(frozen=True)
class ReconConfig:
    eom_url: str = DEFAULT_EOM_URL
    eom_api_key: str = ""
    eom_source: str = "Paris.cl"
    giv_base_url: str = DEFAULT_GIV_BASE_URL
    giv_cookie: str = ""
    timeout: float = 30.0
    group_size: int = 100
    group_delay: float = 5.0
    strict: bool = False

    def validate(self) -> "ReconConfig":
        missing = []
        if not self.eom_url:
            missing.append("--eom-url or EOM_URL")
        if not self.eom_api_key:
            missing.append("--eom-api-key or EOM_API_KEY")
        if not self.giv_base_url:
            missing.append("--giv-base-url or GIV_BASE_URL")
        if not self.giv_cookie:
            missing.append("--giv-cookie or GIV_COOKIE")
        if missing:
            raise ConfigError(f"Missing required config: {', '.join(missing)}")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.group_size <= 0:
            raise ConfigError("group size must be positive")
        if self.group_delay < 0:
            raise ConfigError("group delay cannot be negative")
        return self


def load_env(dotenv_path: Optional[str]) -> None:
    if dotenv_path is None:
        # try default .env in cwd if present
        default_env = Path.cwd() / ".env"
        if default_env.exists():
            load_dotenv(default_env)
        return
    p = Path(dotenv_path)
    if p.exists():
        load_dotenv(p)


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(env: Mapping[str, str], name: str, cast, default):
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value.strip())
    except ValueError:
        raise ConfigError(f"Invalid {name}: {value!r}") from None


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> ReconConfig:
    env = os.environ if environ is None else environ
    base = ReconConfig()
    return ReconConfig(
        eom_url=(env.get("EOM_URL") or base.eom_url).strip(),
        eom_api_key=(env.get("EOM_API_KEY") or "").strip(),
        eom_source=(env.get("EOM_SOURCE") or base.eom_source).strip(),
        giv_base_url=(env.get("GIV_BASE_URL") or base.giv_base_url).strip().rstrip("/"),
        giv_cookie=(env.get("GIV_COOKIE") or "").strip(),
        timeout=_env_number(env, "RECON_TIMEOUT", float, base.timeout),
        group_size=_env_number(env, "RECON_GROUP_SIZE", int, base.group_size),
        group_delay=_env_number(env, "RECON_GROUP_DELAY", float, base.group_delay),
        strict=_env_bool(env.get("RECON_STRICT"), base.strict),
    )


def get_config(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> ReconConfig:
    """Resolve settings: command-line flags win over environment, env over defaults."""
    cfg = config_from_env(environ)
    overrides = {}
    for field in ("eom_url", "eom_api_key", "giv_base_url", "giv_cookie", "timeout", "group_size", "group_delay"):
        value = getattr(args, field, None)
        if value is not None:
            overrides[field] = value
    if getattr(args, "strict", False):
        overrides["strict"] = True
    if "giv_base_url" in overrides:
        overrides["giv_base_url"] = overrides["giv_base_url"].rstrip("/")
    return replace(cfg, **overrides)
