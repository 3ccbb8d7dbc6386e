import json
import os
from pathlib import Path
from typing import Any

_CONFIG_ENV_KEYS = ("LEVERAGE_PATHS_CONFIG_PATH", "LEVERAGE_PATHS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"

DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_QUERY_STALE_TIME_S = 30.0
DEFAULT_PREVIEW_DEBOUNCE_S = 0.0


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError:
        return {}


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def set_rpc_urls(rpc_urls):
    CONFIG.setdefault("network", {})["rpc_urls"] = rpc_urls


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get("network", {}).get("rpc_urls", {})


def get_contract_overrides(chain_id: int) -> dict[str, Any]:
    contracts = CONFIG.get("contracts", {})
    return contracts.get(str(chain_id)) or contracts.get(chain_id) or {}


def get_lifi_api_key() -> str | None:
    system = CONFIG.get("system", {})
    api_key = system.get("lifi_api_key")
    if api_key:
        return str(api_key).strip()
    return os.environ.get("LEVERAGE_PATHS_LIFI_API_KEY")


def get_lifi_integrator() -> str | None:
    value = CONFIG.get("system", {}).get("lifi_integrator")
    return str(value).strip() if value else None


def get_coingecko_api_key() -> str | None:
    api_key = CONFIG.get("system", {}).get("coingecko_api_key")
    if api_key:
        return str(api_key).strip()
    return os.environ.get("LEVERAGE_PATHS_COINGECKO_API_KEY")


def get_api_base_url(service: str, default: str) -> str:
    urls = CONFIG.get("system", {}).get("api_base_urls", {})
    value = urls.get(service)
    if value:
        return str(value).strip().rstrip("/")
    return default


def include_test_tokens() -> bool:
    return bool(CONFIG.get("registry", {}).get("include_test_tokens", False))


def get_default_slippage_bps() -> int:
    value = CONFIG.get("planner", {}).get("default_slippage_bps")
    if value is None:
        return DEFAULT_SLIPPAGE_BPS
    return max(0, min(10_000, int(value)))


def get_preview_debounce_s() -> float:
    value = CONFIG.get("planner", {}).get("debounce_s")
    return DEFAULT_PREVIEW_DEBOUNCE_S if value is None else float(value)


def get_query_stale_time_s() -> float:
    value = CONFIG.get("query", {}).get("stale_time_s")
    return DEFAULT_QUERY_STALE_TIME_S if value is None else float(value)
