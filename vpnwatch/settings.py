"""Monitor settings loaded from an INI file."""

import configparser
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .vpn.exceptions import ConfigurationError
from .vpn.models import PlatformKind


DEFAULT_CONFIG_PATH = "config/vpnwatch.conf"


@dataclass
class MonitorSettings:
    platform: PlatformKind = PlatformKind.ANDROID
    poll_interval: float = 1.0
    randomize_remotes: bool = False
    log_level: str = "INFO"
    provider_bundle_identifier: Optional[str] = None
    localized_description: Optional[str] = None
    group_identifier: Optional[str] = None


def _load_config(config_file: str) -> configparser.ConfigParser:
    config = configparser.ConfigParser()
    config.read(config_file)
    return config


def load_settings(config_file: Optional[str] = None) -> MonitorSettings:
    """
    Load monitor settings.

    A missing file yields the defaults.

    Args:
        config_file: INI file path, VPNWATCH_CONFIG or config/vpnwatch.conf if omitted

    Returns:
        MonitorSettings

    Raises:
        ConfigurationError: If a value is invalid
    """
    path = config_file or os.environ.get("VPNWATCH_CONFIG", DEFAULT_CONFIG_PATH)
    config = _load_config(path)
    settings = MonitorSettings()

    try:
        if config.has_section("monitor"):
            monitor = config["monitor"]
            settings.platform = PlatformKind(monitor.get("platform", settings.platform.value).strip().lower())
            settings.poll_interval = monitor.getfloat("poll_interval", settings.poll_interval)
            settings.randomize_remotes = monitor.getboolean("randomize_remotes", settings.randomize_remotes)
            settings.log_level = monitor.get("log_level", settings.log_level).strip().upper()

        if config.has_section("ios"):
            ios = config["ios"]
            settings.provider_bundle_identifier = ios.get("provider_bundle_identifier")
            settings.localized_description = ios.get("localized_description")
            settings.group_identifier = ios.get("group_identifier")
    except ValueError as e:
        raise ConfigurationError(f"Invalid monitor configuration in {path}: {str(e)}")

    if settings.poll_interval <= 0:
        raise ConfigurationError(f"poll_interval must be positive, got {settings.poll_interval}")
    if settings.log_level not in logging.getLevelNamesMapping():
        raise ConfigurationError(f"Unknown log_level '{settings.log_level}'")

    return settings
