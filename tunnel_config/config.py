"""
Startup configuration.

Settings come from an INI file read with configparser; the LOG_LEVEL and
LOG2FILE environment variables, which the VPN client passes to the script,
override the [logging] section. Values are read once per process.

    [logging]
    level = INFO
    file = no
    timestamps = no
    directory = /tmp
    max_bytes = 5242880
    backup_count = 3

    [routing]
    redirect_method = InterfaceGateway
"""

import configparser
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .logging_utility import parse_log_level
from .netcfg.exceptions import ConfigurationError
from .netcfg.models import RedirectMethod


DEFAULT_CONFIG_FILE = "config/tunnel_config.conf"


@dataclass
class LogSettings:
    """Session log threshold and destination."""
    level: int = logging.INFO
    to_file: bool = False
    timestamps: bool = False
    directory: str = field(default_factory=tempfile.gettempdir)
    filename: str = "vpnc.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 3


@dataclass
class Settings:
    log: LogSettings = field(default_factory=LogSettings)
    redirect_method: RedirectMethod = RedirectMethod.INTERFACE_GATEWAY


def _truthy(value: Optional[str]) -> bool:
    # LOG2FILE is set to any non-empty value to enable it
    return bool(value) and value.strip().lower() not in ("0", "no", "false", "off")


def load_settings(config_file: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings from the config file and the environment.

    Args:
        config_file: INI file path; a missing file means defaults
        environ: Environment mapping, defaults to os.environ

    Returns:
        Settings instance
    """
    if environ is None:
        environ = os.environ

    config = configparser.ConfigParser()
    if config_file:
        config.read(config_file)

    settings = Settings()
    try:
        if config.has_section("logging"):
            section = config["logging"]
            settings.log.level = parse_log_level(section.get("level"), settings.log.level)
            settings.log.to_file = section.getboolean("file", fallback=settings.log.to_file)
            settings.log.timestamps = section.getboolean("timestamps", fallback=settings.log.timestamps)
            settings.log.directory = section.get("directory", fallback=settings.log.directory)
            settings.log.filename = section.get("filename", fallback=settings.log.filename)
            settings.log.max_bytes = section.getint("max_bytes", fallback=settings.log.max_bytes)
            settings.log.backup_count = section.getint("backup_count", fallback=settings.log.backup_count)

        if config.has_section("routing"):
            method = config["routing"].get("redirect_method")
            if method:
                settings.redirect_method = RedirectMethod.parse(method)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration in {config_file}: {e}")

    if "LOG_LEVEL" in environ:
        settings.log.level = parse_log_level(environ["LOG_LEVEL"], settings.log.level)
    if "LOG2FILE" in environ:
        settings.log.to_file = _truthy(environ["LOG2FILE"])

    return settings
