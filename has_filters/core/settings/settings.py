import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    PRODUCTION: bool = False

    LOG_CONFIG_OVERRIDE: Path | None = None
    """ path to custom logging configuration file"""

    LOG_LEVEL: str = "info"
    """ corresponds to standard Python Log levels """

    _logger: logging.Logger | None = None

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            from has_filters.core.root_logger import get_logger

            self._logger = get_logger()

        return self._logger

    # ===============================================
    # Filter Config

    MAX_RULE_DEPTH: int = 8
    """how many composite rules may be nested inside each other"""

    DEFAULT_PER_PAGE: int = 50

    @field_validator("MAX_RULE_DEPTH")
    @classmethod
    def depth_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("MAX_RULE_DEPTH must be at least 1")

        return v

    # ===============================================
    # Testing Config

    TESTING: bool = False

    model_config = SettingsConfigDict(extra="allow")


def app_settings_constructor(
    production: bool,
    env_file: Path,
    env_encoding="utf-8",
) -> AppSettings:
    """
    app_settings_constructor is a factory function that returns an AppSettings object
    read from the environment and the given env file. AppSettings should not be
    instantiated directly, but rather through this factory function
    """

    return AppSettings(
        _env_file=env_file,  # type: ignore
        _env_file_encoding=env_encoding,  # type: ignore
        **{"PRODUCTION": production},
    )
