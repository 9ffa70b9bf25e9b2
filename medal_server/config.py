import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_ASSET_DIR = "public"
DEFAULT_INDEX_FILE = "index.html"
DEFAULT_MAX_PAYLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_LIFTER_TIMEOUT = 30.0
DEFAULT_LUAU_LIFTER = "luau-lifter"
DEFAULT_LUA51_LIFTER = "lua51-lifter"


class ConfigError(ValueError):
    pass


def resolve_port(explicit=None):
    """Pick the listen port: explicit value, then $PORT, then 3000."""
    value = explicit if explicit is not None else os.getenv("PORT")
    if value is None or value == "":
        return DEFAULT_PORT
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


def _env_int(name, default):
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _env_float(name, default):
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class ServeConfig:
    port: int = DEFAULT_PORT
    luau: bool = False
    lua51: bool = False
    host: str = DEFAULT_HOST
    asset_dir: str = DEFAULT_ASSET_DIR
    index_file: str = DEFAULT_INDEX_FILE
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    luau_lifter: str = DEFAULT_LUAU_LIFTER
    lua51_lifter: str = DEFAULT_LUA51_LIFTER
    lifter_timeout: float = DEFAULT_LIFTER_TIMEOUT

    @classmethod
    def from_env(cls, **overrides):
        """Build a config from the environment (and a .env file if present).

        Keyword overrides that are not None take precedence over the
        environment.
        """
        load_dotenv()
        config = cls(
            port=resolve_port(overrides.pop("port", None)),
            host=os.getenv("HOST", DEFAULT_HOST),
            asset_dir=os.getenv("MEDAL_ASSET_DIR", DEFAULT_ASSET_DIR),
            index_file=os.getenv("MEDAL_INDEX_FILE", DEFAULT_INDEX_FILE),
            max_payload_bytes=_env_int("MEDAL_MAX_PAYLOAD_BYTES", DEFAULT_MAX_PAYLOAD_BYTES),
            luau_lifter=os.getenv("MEDAL_LUAU_LIFTER", DEFAULT_LUAU_LIFTER),
            lua51_lifter=os.getenv("MEDAL_LUA51_LIFTER", DEFAULT_LUA51_LIFTER),
            lifter_timeout=_env_float("MEDAL_LIFTER_TIMEOUT", DEFAULT_LIFTER_TIMEOUT),
        )
        return replace(config, **{k: v for k, v in overrides.items() if v is not None})

    def enabled_dialects(self):
        return [name for name, enabled in (("luau", self.luau), ("lua51", self.lua51)) if enabled]
