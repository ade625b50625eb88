import logging
import sys
from pathlib import Path

import appdirs

from game_tracker.constants import APP_NAME, APP_AUTHOR, LOGGER_NAME


def get_log_path(log_file_name: str) -> Path:
    """Return the per-user log file path, creating its directory."""
    log_dir = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / log_file_name


def setup_logger(log_file_name="game_tracker.log"):
    """
    Setups the initial logger.
    param: log_file_name: filename to be used for the logfile.
    return: logger instance created.
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Check if the logger has already been configured
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # Create handlers
        console_handler = logging.StreamHandler(sys.stdout)
        handlers = [console_handler]
        try:
            handlers.append(logging.FileHandler(get_log_path(log_file_name), encoding="utf-8"))
        except OSError as e:
            # Read-only home directories still get console output
            sys.stderr.write(f"Cannot open log file {log_file_name}: {e}\n")

        # Create formatter and add it to handlers
        log_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        for handler in handlers:
            handler.setFormatter(log_format)
            logger.addHandler(handler)

        # Prevent propagation to avoid duplicate logs
        logger.propagate = False

    return logger


def set_console_level(level: int):
    """Change the verbosity of the stdout handler only, the log file keeps everything."""
    logger = setup_logger()
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)


# Usage example
if __name__ == "__main__":
    logger = setup_logger()
    logger.info("This is a test log message")
    logger.info("This is a test logger.info message with an argument: %s", "test arg")
