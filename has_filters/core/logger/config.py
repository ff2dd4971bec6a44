"""
Logging configuration for has_filters.

One JSON dictConfig file per mode (production, development, testing). `${NAME}`
placeholders in a file are replaced from `substitutions` before it is parsed,
so values like the log level can come from settings.
"""

import json
import logging
import pathlib
import typing
from logging import config as logging_config

__dir = pathlib.Path(__file__).parent
__conf: dict[str, typing.Any] | None = None

LOG_CONFIG_FILES = {
    "production": "logconf.prod.json",
    "development": "logconf.dev.json",
    "testing": "logconf.test.json",
}


def _substitute(contents: str, substitutions: dict[str, str]) -> str:
    for key, value in substitutions.items():
        contents = contents.replace(f"${{{key}}}", value)
    return contents


def _log_config(path: pathlib.Path, substitutions: dict[str, str] | None = None) -> dict[str, typing.Any]:
    """
    Reads a dictConfig mapping from a JSON file.

    Args:
        path (pathlib.Path): The JSON configuration file.
        substitutions (dict[str, str] | None, optional): Placeholder values. Defaults to None.

    Returns:
        dict[str, typing.Any]: The parsed configuration.
    """
    contents = path.read_text()
    return json.loads(_substitute(contents, substitutions or {}))


def log_config() -> dict[str, typing.Any]:
    """
    Returns the configuration applied by the last `configured_logger` call.

    Raises:
        ValueError: If no configuration has been applied yet.
    """
    if __conf is None:
        raise ValueError("Logger not configured, call configured_logger first")
    return __conf


def configured_logger(
    *,
    mode: str,
    config_override: pathlib.Path | None = None,
    substitutions: dict[str, str] | None = None,
) -> logging.Logger:
    """
    Applies the logging configuration for `mode` and returns the root logger.

    Args:
        mode (str): One of "production", "development" or "testing".
        config_override (pathlib.Path, optional): Custom config file used instead of the mode's file.
        substitutions (dict[str, str], optional): Placeholder values, e.g. `{"LOG_LEVEL": "DEBUG"}`.

    Raises:
        ValueError: If `mode` is unknown and no override is given.
    """
    global __conf

    if config_override:
        path = config_override
    elif mode in LOG_CONFIG_FILES:
        path = __dir / LOG_CONFIG_FILES[mode]
    else:
        raise ValueError(f"Invalid mode: {mode}")

    __conf = _log_config(path, substitutions)
    logging_config.dictConfig(config=__conf)
    return logging.getLogger()
