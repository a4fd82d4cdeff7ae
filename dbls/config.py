from dataclasses import asdict, dataclass, field, replace
import json
import os
from pathlib import Path


_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ConnectionDefaults:
    host: str = "localhost"
    port: str = "5432"
    user: str = "postgres"
    database: str = ""


@dataclass(frozen=True)
class AppConfig:
    page_size: int = 10
    scroll_step: int = 4
    fast_scroll_step: int = 16
    log_level: str = "INFO"
    connection: ConnectionDefaults = field(default_factory=ConnectionDefaults)


def _config_dir() -> Path:
    return Path.home() / ".config" / ".dbls"


def _settings_path() -> Path:
    return _config_dir() / "settings.json"


def settings_path() -> Path:
    return _settings_path()


def log_path() -> Path:
    return _config_dir() / "dbls.log"


def _positive_int(data: dict, key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{key} must be greater than 0.")
    return value


def _log_level(value: object) -> str:
    level = str(value).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {value}")
    return level


def parse_config(data: dict) -> AppConfig:
    defaults = AppConfig()
    connection_data = data.get("connection", {})
    if not isinstance(connection_data, dict):
        raise ValueError("connection must be an object")
    connection = ConnectionDefaults(
        host=str(connection_data.get("host", defaults.connection.host)),
        port=str(connection_data.get("port", defaults.connection.port)),
        user=str(connection_data.get("user", defaults.connection.user)),
        database=str(connection_data.get("database", defaults.connection.database)),
    )
    return AppConfig(
        page_size=_positive_int(data, "page_size", defaults.page_size),
        scroll_step=_positive_int(data, "scroll_step", defaults.scroll_step),
        fast_scroll_step=_positive_int(
            data, "fast_scroll_step", defaults.fast_scroll_step
        ),
        log_level=_log_level(data.get("log_level", defaults.log_level)),
        connection=connection,
    )


def apply_environment(config: AppConfig, environ: dict[str, str] | None = None) -> AppConfig:
    environ = os.environ if environ is None else environ
    connection = config.connection
    return replace(
        config,
        connection=ConnectionDefaults(
            host=environ.get("PGHOST", connection.host),
            port=environ.get("PGPORT", connection.port),
            user=environ.get("PGUSER", connection.user),
            database=environ.get("PGDATABASE", connection.database),
        ),
    )


def read_settings() -> AppConfig:
    """Settings from the file alone, without environment overrides."""
    config_path = _settings_path()
    if not config_path.exists():
        return AppConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid settings file {config_path}: {error}") from error
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings file {config_path}: expected an object")
    return parse_config(data)


def load_config() -> AppConfig:
    return apply_environment(read_settings())


def save_config(config: AppConfig) -> None:
    config_dir = _config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    _settings_path().write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")


def password_from_environment(environ: dict[str, str] | None = None) -> str:
    environ = os.environ if environ is None else environ
    return environ.get("PGPASSWORD", "")


def form_values(config: AppConfig, password: str = "") -> dict[str, str]:
    return {
        "Host": config.connection.host,
        "Port": config.connection.port,
        "User": config.connection.user,
        "Password": password,
        "Database": config.connection.database,
    }
