#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
from colorama import init, Fore, Style
from datetime import datetime
from enum import Enum, IntEnum

from utils.ConfigLoader import ConfigLoader

init()


class DebugColorLevel(Enum):
    SUCCESS = Fore.GREEN + Style.BRIGHT
    INFO = Fore.BLUE + Style.BRIGHT
    WARNING = Fore.YELLOW + Style.BRIGHT
    ERROR = Fore.RED + Style.BRIGHT
    DEBUG = Fore.CYAN + Style.BRIGHT


class DebugLevel(IntEnum):
    NONE = 0x00
    SUCCESS = 0x01
    INFO = 0x02
    WARNING = 0x08
    ERROR = 0x10
    DEBUG = 0x20
    ALL = 0xff


# names accepted in Logging.logging_levels / logging_file_levels
LEVEL_NAMES = {
    "None": DebugLevel.NONE,
    "Success": DebugLevel.SUCCESS,
    "Information": DebugLevel.INFO,
    "Warning": DebugLevel.WARNING,
    "Error": DebugLevel.ERROR,
    "Debug": DebugLevel.DEBUG,
    "All": DebugLevel.ALL,
}


class Logger:
    """
    Colored console logger + append-only file logger.

    Messages carry their component tag themselves ("[SRP6a] ...",
    "[DB] ..."). Nothing secret is ever passed in here.
    """

    @staticmethod
    def _logging_config() -> dict:
        return ConfigLoader.get_config().get("Logging", {})

    @staticmethod
    def _get_logging_mask(levels) -> DebugLevel:
        mask = DebugLevel.NONE
        for name in levels:
            mask |= LEVEL_NAMES.get(name.strip(), DebugLevel.NONE)
        return mask

    @staticmethod
    def _enabled(key: str, default: str, level: DebugLevel) -> bool:
        names = Logger._logging_config().get(key, default).split(",")
        return bool(Logger._get_logging_mask(names) & level)

    @staticmethod
    def _timestamp():
        fmt = Logger._logging_config().get("date_format", "[%Y-%m-%d %H:%M:%S]")
        return datetime.now().strftime(fmt)

    @staticmethod
    def _log_path():
        cfg = Logger._logging_config()
        log_dir = cfg.get("log_dir", "logs")
        os.makedirs(log_dir, exist_ok=True)
        return os.path.join(log_dir, cfg.get("log_file", "authn.log"))

    @staticmethod
    def add_to_log(msg, level_tag=None):
        prefix = f"[{level_tag}] {Logger._timestamp()} " if level_tag else ""
        with open(Logger._log_path(), "a", encoding="utf-8", errors="replace") as log:
            log.write(f"{prefix}{msg}\n")

    @staticmethod
    def reset_log():
        open(Logger._log_path(), "w").close()

    @staticmethod
    def _emit(level: DebugLevel, color: DebugColorLevel, tag: str, msg):
        if Logger._enabled("logging_levels", "All", level):
            print(f"{color.value}[{tag}]{Style.RESET_ALL}{Logger._timestamp()} {msg}")
        if Logger._enabled("logging_file_levels", "None", level):
            Logger.add_to_log(msg, tag)

    # ===================================================================
    # Console + File logging methods
    # ===================================================================

    @staticmethod
    def debug(msg):
        Logger._emit(DebugLevel.DEBUG, DebugColorLevel.DEBUG, "DEBUG", msg)

    @staticmethod
    def info(msg):
        Logger._emit(DebugLevel.INFO, DebugColorLevel.INFO, "INFO", msg)

    @staticmethod
    def warning(msg):
        Logger._emit(DebugLevel.WARNING, DebugColorLevel.WARNING, "WARNING", msg)

    @staticmethod
    def error(msg):
        Logger._emit(DebugLevel.ERROR, DebugColorLevel.ERROR, "ERROR", msg)

    @staticmethod
    def success(msg):
        Logger._emit(DebugLevel.SUCCESS, DebugColorLevel.SUCCESS, "SUCCESS", msg)
