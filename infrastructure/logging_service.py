"""
Logger multi-fichiers: un fichier détaillé par module + le logger racine.

Usage:
    logger = get_module_logger("DocumentService", "documents.log")
    logger.detail("offer #3 recalculated")   # -> logs/documents.log only
    logger.warning("number conflict")        # -> logs/documents.log + console

Logging can be switched off globally (tests, packaged runs) with
disable_all_logging(); loggers created afterwards use NullHandlers.
"""

import logging
from pathlib import Path

ROOT_LOGGER_NAME = "BPOffice"
LOG_DIR = Path("logs")

_LOGGING_DISABLED = False


class ModuleFileLogger:
    """Writes verbose output to a per-module file, warnings and errors also to the console."""

    def __init__(self, module_name: str, detail_filename: str):
        self.module_name = module_name
        self.detail_filename = detail_filename

        self.main_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.detail_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}.detail")
        self.detail_logger.propagate = False

        if _LOGGING_DISABLED:
            self.detail_logger.setLevel(logging.CRITICAL + 1)
            if not self.detail_logger.hasHandlers():
                self.detail_logger.addHandler(logging.NullHandler())
            return

        self.main_logger.setLevel(logging.DEBUG)
        if not self.main_logger.hasHandlers():
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(
                logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s', '%H:%M:%S')
            )
            console_handler.setLevel(logging.WARNING)
            self.main_logger.addHandler(console_handler)

        self.detail_logger.setLevel(logging.DEBUG)
        if not self.detail_logger.handlers:
            LOG_DIR.mkdir(exist_ok=True)
            log_path = LOG_DIR / Path(detail_filename).name
            detail_handler = logging.FileHandler(str(log_path), mode='a', encoding='utf-8')
            detail_handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s]: %(message)s', '%H:%M:%S'))
            detail_handler.setLevel(logging.DEBUG)
            self.detail_logger.addHandler(detail_handler)

    def detail(self, message: str):
        self.detail_logger.debug(message)

    def info(self, message: str):
        self.detail_logger.info(message)

    def warning(self, message: str):
        self.detail_logger.warning(message)
        self.main_logger.warning(f"[{self.module_name}] {message}")

    def error(self, message: str, exc_info: bool = False):
        self.detail_logger.error(message, exc_info=exc_info)
        self.main_logger.error(f"[{self.module_name}] {message}", exc_info=exc_info)

    def close(self):
        for handler in list(self.detail_logger.handlers):
            handler.close()
            self.detail_logger.removeHandler(handler)


_module_loggers = {}


def get_module_logger(module_name: str, detail_filename: str) -> ModuleFileLogger:
    """Cached per (module, file) to avoid stacking handlers."""
    key = f"{module_name}:{detail_filename}"
    if key not in _module_loggers:
        _module_loggers[key] = ModuleFileLogger(module_name, detail_filename)
    return _module_loggers[key]


def close_all_module_loggers():
    for logger in _module_loggers.values():
        logger.close()
    _module_loggers.clear()


def disable_all_logging():
    global _LOGGING_DISABLED
    _LOGGING_DISABLED = True


def enable_logging():
    """Only loggers created after this call are affected."""
    global _LOGGING_DISABLED
    _LOGGING_DISABLED = False
