from __future__ import annotations
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict

from shipping_recon.config import ConfigError, ReconConfig, config_from_env


log = logging.getLogger(__name__)

SETTINGS_PATH: Path | None = None


def init_settings(path: Path) -> None:
    global SETTINGS_PATH
    SETTINGS_PATH = path
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        save_settings(default_settings())


def default_settings() -> Dict:
    try:
        env = config_from_env()
    except ConfigError as e:
        log.error(f"Ignoring environment settings: {e}")
        env = ReconConfig()
    return {
        "eom_url": env.eom_url,
        "eom_api_key": env.eom_api_key,
        "eom_source": env.eom_source,
        "giv_base_url": env.giv_base_url,
        "giv_cookie": env.giv_cookie,
        "timeout": env.timeout,
        "group_size": env.group_size,
        "group_delay": env.group_delay,
        "strict": env.strict,
    }


def get_settings() -> Dict:
    assert SETTINGS_PATH is not None
    try:
        data = json.loads(SETTINGS_PATH.read_text())
        base = default_settings()
        base.update(data or {})
        return base
    except Exception:
        return default_settings()


def save_settings(data: Dict) -> None:
    assert SETTINGS_PATH is not None
    SETTINGS_PATH.write_text(json.dumps(data, indent=2))


def settings_to_config(s: Dict, **overrides) -> ReconConfig:
    cfg = ReconConfig(
        eom_url=s.get("eom_url") or "",
        eom_api_key=s.get("eom_api_key") or "",
        eom_source=s.get("eom_source") or "Paris.cl",
        giv_base_url=(s.get("giv_base_url") or "").rstrip("/"),
        giv_cookie=s.get("giv_cookie") or "",
        timeout=float(s.get("timeout") if s.get("timeout") is not None else 30.0),
        group_size=int(s.get("group_size") or 100),
        group_delay=float(s.get("group_delay") if s.get("group_delay") is not None else 5.0),
        strict=bool(s.get("strict", False)),
    )
    return replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
