"""Authentication configuration from YAML and environment variables.

Loads the ``auth:`` section of a YAML file, for example:

    auth:
      ad_endpoint: https://login.microsoftonline.com/
      ad_domain: ${AZURE_TENANT_ID:-common}
      client_id: 1950a258-227b-4e31-a9cf-717495945fc2
      resource_client_uri: https://management.core.windows.net/
      token_cache_path: ~/.userauth/token_cache.json

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files,
and the AZURE_* variables in ENV_OVERRIDES take precedence over the file.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml

from userauth.errors.exceptions import InvalidConfigurationError
from userauth.tokens.models import AuthConfiguration

try:
    import msal

    MSAL_AVAILABLE = True
except ImportError:
    msal = None
    MSAL_AVAILABLE = False

logger = logging.getLogger(__name__)

# Environment variable -> configuration key
ENV_OVERRIDES = {
    "AZURE_AD_ENDPOINT": "ad_endpoint",
    "AZURE_TENANT_ID": "ad_domain",
    "AZURE_CLIENT_ID": "client_id",
    "AZURE_RESOURCE_URI": "resource_client_uri",
    "AZURE_REDIRECT_URI": "client_redirect_uri",
    "AZURE_TOKEN_CACHE_PATH": "token_cache_path",
}

CONFIG_KEYS = frozenset(
    {
        "ad_endpoint",
        "ad_domain",
        "client_id",
        "resource_client_uri",
        "client_redirect_uri",
        "validate_authority",
        "token_cache_path",
    }
)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-(([^}]*))?)?\}")


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):

        def replacer(match):
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(match.group(1), default_value)

        return _ENV_VAR_PATTERN.sub(replacer, data)
    else:
        return data


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_token_cache(path: Path) -> Any:
    """
    Create an MSAL SerializableTokenCache and load it from disk if present.

    Raises:
        InvalidConfigurationError: If msal is not installed or the file is not
            a valid serialized cache
    """
    if not MSAL_AVAILABLE:
        raise InvalidConfigurationError(
            "msal library not installed. Install with: pip install msal"
        )

    cache = msal.SerializableTokenCache()
    if path.exists():
        try:
            cache.deserialize(path.read_text())
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Token cache file is not valid: {path}", cause=e
            ) from e
        logger.debug("Loaded token cache", extra={"token_cache_path": str(path)})
    return cache


def save_token_cache(cache: Any, path: Path) -> bool:
    """
    Persist a SerializableTokenCache if its state changed.

    Returns:
        True if the cache was written
    """
    if cache is None or not getattr(cache, "has_state_changed", False):
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cache.serialize())
    logger.debug("Saved token cache", extra={"token_cache_path": str(path)})
    return True


def load_auth_config(
    path: Path | None = None,
    use_env: bool = True,
    token_cache: Any = None,
) -> AuthConfiguration:
    """
    Build an AuthConfiguration from a YAML file and the environment.

    Args:
        path: YAML file with an ``auth:`` section (optional)
        use_env: Apply ENV_OVERRIDES on top of the file values
        token_cache: Token cache to use. When omitted and token_cache_path is
            configured, the cache is loaded from that file.

    Returns:
        AuthConfiguration instance

    Raises:
        InvalidConfigurationError: On unknown keys or an empty client_id
    """
    values: Dict[str, Any] = {}
    if path is not None:
        data = _expand_env_vars(load_yaml(Path(path)))
        section = data.get("auth", {}) if isinstance(data, dict) else {}
        if not isinstance(section, dict):
            raise InvalidConfigurationError(f"'auth' section in {path} must be a mapping")
        values.update(section)

    if use_env:
        for env_var, key in ENV_OVERRIDES.items():
            env_value = os.getenv(env_var)
            if env_value:
                values[key] = env_value

    unknown = set(values) - CONFIG_KEYS
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown auth configuration keys: {', '.join(sorted(unknown))}"
        )

    cache_path = values.pop("token_cache_path", None)
    if token_cache is None and cache_path:
        token_cache = load_token_cache(Path(cache_path).expanduser())

    if "validate_authority" in values:
        values["validate_authority"] = _parse_bool(values["validate_authority"])

    config = AuthConfiguration(token_cache=token_cache, **values)
    if not config.client_id:
        raise InvalidConfigurationError("client_id is required")

    logger.debug(
        "Loaded auth configuration",
        extra={
            "authority": config.authority,
            "client_id": config.client_id,
            "validate_authority": config.validate_authority,
        },
    )
    return config


def get_token_cache_path(path: Path | None = None, use_env: bool = True) -> Path | None:
    """Configured token cache file location, if any."""
    value = None
    if path is not None:
        data = _expand_env_vars(load_yaml(Path(path)))
        section = data.get("auth", {}) if isinstance(data, dict) else {}
        if isinstance(section, dict):
            value = section.get("token_cache_path")
    if use_env and os.getenv("AZURE_TOKEN_CACHE_PATH"):
        value = os.getenv("AZURE_TOKEN_CACHE_PATH")
    return Path(value).expanduser() if value else None


__all__ = [
    "ENV_OVERRIDES",
    "load_auth_config",
    "load_token_cache",
    "save_token_cache",
    "get_token_cache_path",
    "load_yaml",
]
