# udpinger/logging_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"


def setup_logging(level: str = "INFO", log_file: str = None) -> logging.Logger:
    """
    Configure logging to print to stdout at ``level``.
    If log_file is provided, that file also receives DEBUG records, so a quiet
    console run still leaves a full per-probe trace behind.
    """
    console_level = level.upper()

    # Get root logger; it must pass DEBUG through when a file wants it
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if log_file else console_level)

    # Clear any existing handlers (repeated runs in one process)
    if logger.hasHandlers():
        logger.handlers.clear()

    # Create formatter
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # Console handler (stdout) shares the stream with the ping report
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    # Optionally create file handler
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)
        logger.debug(f"Logging to file: {log_file}")

    # Log uncaught exceptions instead of dumping a bare traceback
    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return logger
