import configparser
from enum import StrEnum
from pathlib import Path
from typing import Optional

import appdirs

from .constants import (
    APP_NAME,
    APP_AUTHOR,
    DEFAULT_MAX_ITEMIZED_DUPLICATES,
    DEFAULT_CATALOG_URL,
    DEFAULT_CATALOG_TIMEOUT,
    DEFAULT_POOL_SIZE,
)
from .logger import setup_logger

logger = setup_logger()


def get_config_dir() -> Path:
    """Per-user configuration directory, created on first use"""
    config_dir = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> str:
    return str(get_config_dir() / "config.ini")


class Section(StrEnum):
    LIBRARY = 'Library'
    DATABASE = 'Database'
    CATALOG = 'Catalog'
    SYNC = 'Sync'


class SettingName(StrEnum):
    MAX_ITEMIZED_DUPLICATES = 'max_itemized_duplicates'
    DATABASE_PATH = 'path'
    POOL_SIZE = 'pool_size'
    CATALOG_URL = 'base_url'
    CATALOG_TIMEOUT = 'timeout'
    ISOLATE_FAILURES = 'isolate_failures'


class ConfigManager(configparser.ConfigParser):
    """
    INI-backed application settings.

    Unlike the old singleton, every instance reads its own file so tests and
    tools can point at a temporary config.
    """

    def __init__(self, config_path: Optional[str] = None):
        super().__init__()
        self.config_path = config_path or get_config_path()
        self.read_dict({
            Section.LIBRARY: {
                SettingName.MAX_ITEMIZED_DUPLICATES: str(DEFAULT_MAX_ITEMIZED_DUPLICATES),
            },
            Section.DATABASE: {
                SettingName.DATABASE_PATH: '',
                SettingName.POOL_SIZE: str(DEFAULT_POOL_SIZE),
            },
            Section.CATALOG: {
                SettingName.CATALOG_URL: DEFAULT_CATALOG_URL,
                SettingName.CATALOG_TIMEOUT: str(DEFAULT_CATALOG_TIMEOUT),
            },
            Section.SYNC: {
                SettingName.ISOLATE_FAILURES: 'false',
            },
        })
        read_files = self.read(self.config_path, encoding='utf-8')
        if read_files:
            logger.debug(f'Loaded configuration from {self.config_path}')
        else:
            logger.debug(f'No configuration at {self.config_path}, using defaults')

    def update_setting(self, section: Section, key: SettingName, value):
        logger.debug(f'Attempting to update {section}.{key}.')
        # Write changes back to the INI file
        self[section][key] = str(value)
        Path(self.config_path).parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as configfile:
            self.write(configfile)
        logger.debug(f'Updated {section}.{key}.')

    @property
    def max_itemized_duplicates(self) -> int:
        value = self.getint(Section.LIBRARY, SettingName.MAX_ITEMIZED_DUPLICATES)
        if value < 0:
            raise ValueError(f"max_itemized_duplicates must be >= 0, got {value}")
        return value

    @property
    def database_path(self) -> Path:
        value = self.get(Section.DATABASE, SettingName.DATABASE_PATH)
        if value:
            return Path(value)
        return get_config_dir() / "library.db"

    @property
    def pool_size(self) -> int:
        return max(1, self.getint(Section.DATABASE, SettingName.POOL_SIZE))

    @property
    def catalog_url(self) -> str:
        return self.get(Section.CATALOG, SettingName.CATALOG_URL).rstrip('/')

    @property
    def catalog_timeout(self) -> float:
        return self.getfloat(Section.CATALOG, SettingName.CATALOG_TIMEOUT)

    @property
    def isolate_failures(self) -> bool:
        return self.getboolean(Section.SYNC, SettingName.ISOLATE_FAILURES)
