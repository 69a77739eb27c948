from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

from . import utils
from .policy import MissingContainerHandling, MissingEnvVarHandling

DEFAULT_ENV_FILE = ".env"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE_NAME = "beachhead-companion.log"
DEFAULT_REDIS_HOST = "localhost"
DEFAULT_REDIS_PORT = 6379
DEFAULT_REDIS_DB = 0
DEFAULT_EXPIRE_SECONDS = 60
DEFAULT_ENVVAR = "BEACHHEAD_DOMAINS"
DEFAULT_KEY_PREFIX = "beachhead:"
DEFAULT_MISSING_ENVVAR = MissingEnvVarHandling.AUTOMATIC
DEFAULT_MISSING_CONTAINER = MissingContainerHandling.IGNORE
MIN_REFRESH_SECONDS = 10
REFRESH_EXPIRE_RATIO = 0.45
LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
CONSOLE_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
QUIET_LOGGERS = ("docker", "urllib3", "redis")


@dataclass(frozen=True)
class CompanionConfig:
    redis_host: str = DEFAULT_REDIS_HOST
    redis_port: int = DEFAULT_REDIS_PORT
    redis_db: int = DEFAULT_REDIS_DB
    redis_password: str | None = None
    key_prefix: str = DEFAULT_KEY_PREFIX
    expire_seconds: int | None = DEFAULT_EXPIRE_SECONDS
    refresh_seconds: int | None = None
    envvar: str = DEFAULT_ENVVAR
    docker_url: str | None = None
    docker_network: bool = False
    dry_run: bool = False
    enumerate: bool = False
    missing_envvar: MissingEnvVarHandling = DEFAULT_MISSING_ENVVAR
    missing_container: MissingContainerHandling = DEFAULT_MISSING_CONTAINER

    def problems(self) -> list[str]:
        out: list[str] = []
        if not self.redis_host.strip():
            out.append("redis host must not be empty")
        if not 0 < self.redis_port <= 65535:
            out.append(f"redis port out of range: {self.redis_port}")
        if self.redis_db < 0:
            out.append(f"redis db must be >= 0: {self.redis_db}")
        if self.expire_seconds is not None and self.expire_seconds <= 0:
            out.append(f"expire seconds must be positive: {self.expire_seconds}")
        if self.refresh_seconds is not None and self.refresh_seconds <= 0:
            out.append(f"refresh seconds must be positive: {self.refresh_seconds}")
        if not self.envvar or "=" in self.envvar or any(c.isspace() for c in self.envvar):
            out.append(f"invalid environment variable name: {self.envvar!r}")
        return out


class ConfigManager:
    """Centralized configuration.

    - Loads `.env` (or `BEACHHEAD_ENV_FILE`) via python-dotenv.
    - Reads runtime config from `BEACHHEAD_*` environment variables.
    - Assigns project defaults consistently.
    """

    @staticmethod
    def _env_bool(value: str | None, *, default: bool) -> bool:
        b = utils.normalize_bool(value)
        return default if b is None else b

    @staticmethod
    def _env_str(name: str) -> str | None:
        v = os.getenv(name)
        return v.strip() if v and v.strip() else None

    @staticmethod
    def _env_int(name: str) -> int | None:
        raw = ConfigManager._env_str(name)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError as e:
            raise ValueError(f"{name} must be an integer") from e

    @staticmethod
    def env_file() -> str:
        return ConfigManager._env_str("BEACHHEAD_ENV_FILE") or DEFAULT_ENV_FILE

    @staticmethod
    def load_dotenv(path: str | None = None) -> None:
        """Load env file into process env. A missing file is not an error."""
        load_dotenv(dotenv_path=path or ConfigManager.env_file())

    @staticmethod
    def redis_host() -> str:
        return ConfigManager._env_str("BEACHHEAD_REDIS_HOST") or DEFAULT_REDIS_HOST

    @staticmethod
    def redis_port() -> int:
        raw = ConfigManager._env_str("BEACHHEAD_REDIS_PORT")
        if raw is None:
            return DEFAULT_REDIS_PORT
        return utils.parse_port(raw, field="BEACHHEAD_REDIS_PORT")

    @staticmethod
    def redis_db() -> int:
        v = ConfigManager._env_int("BEACHHEAD_REDIS_DB")
        return DEFAULT_REDIS_DB if v is None else v

    @staticmethod
    def redis_password() -> str | None:
        return os.getenv("BEACHHEAD_REDIS_PASSWORD") or None

    @staticmethod
    def key_prefix() -> str:
        v = os.getenv("BEACHHEAD_KEY_PREFIX")
        return DEFAULT_KEY_PREFIX if v is None else v

    @staticmethod
    def expire_seconds() -> int:
        """Expiry as configured; 0 means no expiry."""
        v = ConfigManager._env_int("BEACHHEAD_EXPIRE")
        return DEFAULT_EXPIRE_SECONDS if v is None else v

    @staticmethod
    def refresh_seconds() -> int | None:
        return ConfigManager._env_int("BEACHHEAD_REFRESH")

    @staticmethod
    def envvar() -> str:
        return ConfigManager._env_str("BEACHHEAD_ENVVAR") or DEFAULT_ENVVAR

    @staticmethod
    def docker_url() -> str | None:
        return ConfigManager._env_str("BEACHHEAD_DOCKER_URL")

    @staticmethod
    def docker_network() -> bool:
        return ConfigManager._env_bool(os.getenv("BEACHHEAD_DOCKER_NETWORK"), default=False)

    @staticmethod
    def enumerate() -> bool:
        return ConfigManager._env_bool(os.getenv("BEACHHEAD_ENUMERATE"), default=False)

    @staticmethod
    def missing_envvar() -> MissingEnvVarHandling:
        raw = ConfigManager._env_str("BEACHHEAD_MISSING_ENVVAR")
        if raw is None:
            return DEFAULT_MISSING_ENVVAR
        try:
            return MissingEnvVarHandling(raw.lower())
        except ValueError as e:
            choices = ", ".join(m.value for m in MissingEnvVarHandling)
            raise ValueError(f"BEACHHEAD_MISSING_ENVVAR must be one of: {choices}") from e

    @staticmethod
    def missing_container() -> MissingContainerHandling:
        raw = ConfigManager._env_str("BEACHHEAD_MISSING_CONTAINER")
        if raw is None:
            return DEFAULT_MISSING_CONTAINER
        try:
            return MissingContainerHandling(raw.lower())
        except ValueError as e:
            choices = ", ".join(m.value for m in MissingContainerHandling)
            raise ValueError(f"BEACHHEAD_MISSING_CONTAINER must be one of: {choices}") from e

    @staticmethod
    def log_level() -> str:
        v = os.getenv("BEACHHEAD_LOG_LEVEL")
        return (v or DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL

    @staticmethod
    def resolve_refresh_seconds(expire_seconds: int | None, refresh_seconds: int | None) -> int | None:
        """Effective refresh interval; None means publish once and exit.

        An explicit 0 runs once. Unset refresh follows the expiry: 45% of it,
        but at least MIN_REFRESH_SECONDS.
        """
        if refresh_seconds is not None:
            return refresh_seconds if refresh_seconds != 0 else None
        if expire_seconds is None:
            return None
        return max(MIN_REFRESH_SECONDS, int(expire_seconds * REFRESH_EXPIRE_RATIO))

    @staticmethod
    def companion_config(**overrides: object) -> CompanionConfig:
        """Build the configuration from the environment; non-None overrides win."""
        expire = ConfigManager.expire_seconds()
        config = CompanionConfig(
            redis_host=ConfigManager.redis_host(),
            redis_port=ConfigManager.redis_port(),
            redis_db=ConfigManager.redis_db(),
            redis_password=ConfigManager.redis_password(),
            key_prefix=ConfigManager.key_prefix(),
            expire_seconds=expire if expire != 0 else None,
            refresh_seconds=ConfigManager.refresh_seconds(),
            envvar=ConfigManager.envvar(),
            docker_url=ConfigManager.docker_url(),
            docker_network=ConfigManager.docker_network(),
            enumerate=ConfigManager.enumerate(),
            missing_envvar=ConfigManager.missing_envvar(),
            missing_container=ConfigManager.missing_container(),
        )
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "expire_seconds" in changes and changes["expire_seconds"] == 0:
            changes["expire_seconds"] = None
        config = replace(config, **changes)  # type: ignore[arg-type]
        return replace(
            config,
            refresh_seconds=ConfigManager.resolve_refresh_seconds(config.expire_seconds, config.refresh_seconds),
        )

    @staticmethod
    def _parse_log_level(level: str | None) -> int:
        name = (level or DEFAULT_LOG_LEVEL).strip().upper()
        if name not in LOG_LEVEL_NAMES:
            raise ValueError("log_level must be one of: " + ", ".join(LOG_LEVEL_NAMES))
        return logging.getLevelName(name)

    @staticmethod
    def _resolve_log_file_path(value: str | os.PathLike[str] | None) -> Path | None:
        """Path of the log file; a directory (existing, or given with a trailing slash) gets the default name."""
        raw = str(value or "").strip()
        if not raw:
            return None
        path = Path(raw).expanduser()
        if raw.endswith(("/", os.sep)) or path.is_dir():
            return path / DEFAULT_LOG_FILE_NAME
        return path

    @staticmethod
    def _file_handler(path: Path, level: int) -> logging.Handler | None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(path, encoding="utf-8")
        except OSError as e:
            logging.getLogger(__name__).warning("Failed to enable file logging to %s (%s)", path, e)
            return None
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        return handler

    @staticmethod
    def configure_logging(
        console_level: str,
        *,
        log_file: str | os.PathLike[str] | None = None,
        file_level: str | None = None,
    ) -> None:
        """Replace the root handlers with a stderr handler and, if `log_file` is set, a file handler.

        The file handler uses `file_level` when given, else the console level.
        """
        console = ConfigManager._parse_log_level(console_level)
        to_file = ConfigManager._parse_log_level(file_level) if file_level and str(file_level).strip() else console
        path = ConfigManager._resolve_log_file_path(log_file)

        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)

        stream = logging.StreamHandler(stream=sys.stderr)
        stream.setLevel(console)
        stream.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
        root.addHandler(stream)
        root.setLevel(console)

        if path is not None:
            file_handler = ConfigManager._file_handler(path, to_file)
            if file_handler is not None:
                root.addHandler(file_handler)
                root.setLevel(min(console, to_file))

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        return logging.getLogger(name)
