import configparser
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

from shimmerdata.constants import (
    CONFIG,
    CONFIG_SECTION,
    DEFAULT_BATCH_SIZE,
    DEFAULT_INTERVAL,
    DEFAULT_TIMEOUT,
    ENV_PREFIX,
    MAX_BATCH_SIZE,
)
from shimmerdata.errors import ConfigurationError

from .log_codes import (
    BATCH_CONFIG_MISSING_SECTION,
    BATCH_RESOLVED,
    BATCH_VALUE_INVALID,
    BATCH_VALUE_NORMALIZED,
)

logger = logging.getLogger(__name__)

TRUTHY = ("1", "true", "yes", "on")
FALSY = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class BatchConfig:
    """
    Immutable settings of a batch consumer.

    Out of range values are replaced by their defaults when the instance is
    built; an empty ``server_url`` is rejected.
    """

    server_url: str
    app_id: str = ""
    app_token: str = ""
    temp_dir: Optional[str] = None
    batch_size: int = DEFAULT_BATCH_SIZE
    timeout: float = DEFAULT_TIMEOUT
    compress: bool = False
    interval: float = DEFAULT_INTERVAL
    intake_capacity: int = 0

    def __post_init__(self) -> None:
        if not self.server_url or not self.server_url.strip():
            logger.error(BATCH_VALUE_INVALID, extra={"field": "server_url"})
            raise ConfigurationError("server_url can not be empty")
        self._set("server_url", self.server_url.strip().rstrip("/"))

        batch_size = self.batch_size
        if batch_size > MAX_BATCH_SIZE:
            batch_size = MAX_BATCH_SIZE
        elif batch_size <= 0:
            batch_size = DEFAULT_BATCH_SIZE
        self._set("batch_size", batch_size)

        if self.timeout <= 0:
            self._set("timeout", DEFAULT_TIMEOUT)
        if self.interval <= 0:
            self._set("interval", DEFAULT_INTERVAL)
        if self.intake_capacity <= 0:
            self._set("intake_capacity", self.batch_size * 2)

        if self.temp_dir:
            self._set("temp_dir", os.path.abspath(os.path.expanduser(self.temp_dir)))
        else:
            self._set("temp_dir", None)

    def _set(self, name: str, value: Any) -> None:
        current = getattr(self, name)
        if current != value:
            logger.debug(
                BATCH_VALUE_NORMALIZED,
                extra={"field": name, "given": current, "used": value},
            )
        object.__setattr__(self, name, value)

    @property
    def spooling_enabled(self) -> bool:
        return self.temp_dir is not None


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    raise ValueError(f"not a boolean: {value!r}")


_PARSERS: Dict[str, Callable[[str], Any]] = {
    "server_url": str,
    "app_id": str,
    "app_token": str,
    "temp_dir": str,
    "batch_size": int,
    "timeout": float,
    "compress": _parse_bool,
    "interval": float,
    "intake_capacity": int,
}


def _parse(name: str, raw: str, source: str) -> Any:
    try:
        return _PARSERS[name](raw)
    except ValueError:
        logger.error(BATCH_VALUE_INVALID, extra={"field": name, "source": source})
        raise ConfigurationError(f"{name} from {source} is not valid: {raw!r}")


def _batch_from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    """
    Read the batch settings defined as ``SHIMMERDATA_<FIELD>`` variables.

    Args:
        environ (Mapping[str, str]): The environment to read.

    Returns:
        Dict[str, Any]: The parsed values, keyed by field name.
    """
    values = {}
    for name in _PARSERS:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = _parse(name, raw, source="env")
    return values


def _batch_from_config_ini(config_path: Path) -> Dict[str, Any]:
    """
    Read the batch settings from the ``[shimmerdata]`` section of config.ini.

    Args:
        config_path (Path): The path to the config.ini file.

    Returns:
        Dict[str, Any]: The parsed values, keyed by field name.
    """
    config = configparser.ConfigParser()
    config_files = config.read(filenames=[config_path])

    if not config_files or not config.has_section(CONFIG_SECTION):
        if config_files:
            logger.debug(
                BATCH_CONFIG_MISSING_SECTION, extra={"config_path": str(config_path)}
            )
        return {}

    section = config[CONFIG_SECTION]
    return {
        name: _parse(name, section[name], source="config")
        for name in _PARSERS
        if name in section
    }


def get_batch_config(
    config_path: Path = CONFIG,
    environ: Optional[Mapping[str, str]] = None,
    **options: Any,
) -> BatchConfig:
    """
    Resolve the effective batch consumer configuration.

    Resolution order, per field (first defined wins):
      1. Keyword options (command-line options)
      2. SHIMMERDATA_* environment variables
      3. config.ini file
      4. BatchConfig defaults

    Args:
        config_path (Path): The path to the config.ini file.
        environ (Optional[Mapping[str, str]]): Environment, ``os.environ`` by default.
        **options: Explicit field values; None means "not given".

    Returns:
        BatchConfig: The resolved configuration.

    Raises:
        ConfigurationError: If a value cannot be parsed or server_url is missing.
    """
    known = {f.name for f in fields(BatchConfig)}
    unknown = set(options) - known
    if unknown:
        raise ConfigurationError(f"unknown options: {', '.join(sorted(unknown))}")

    sources = [
        ("cli", {k: v for k, v in options.items() if v is not None}),
        ("env", _batch_from_env(os.environ if environ is None else environ)),
        ("config", _batch_from_config_ini(config_path)),
    ]

    resolved: Dict[str, Any] = {}
    origin: Dict[str, str] = {}
    for source_name, values in sources:
        for name, value in values.items():
            if name not in resolved:
                resolved[name] = value
                origin[name] = source_name

    logger.info(BATCH_RESOLVED, extra={"sources": origin, "config_path": str(config_path)})

    if "server_url" not in resolved:
        raise ConfigurationError("server_url can not be empty")

    return BatchConfig(**resolved)
