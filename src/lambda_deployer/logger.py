import logging
import sys
import traceback

from colorlog import ColoredFormatter

LOGGER_NAME = "lambda_deployer"

_debug_mode = False


def setup_logger(debug_mode=False):
    global _debug_mode
    _debug_mode = debug_mode

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = ColoredFormatter(
            "%(log_color)s[%(levelname)s] %(message)s",
            log_colors={
                "DEBUG":    "cyan",
                "INFO":     "green",
                "WARNING":  "yellow",
                "ERROR":    "red",
                "CRITICAL": "red,bg_white",
            }
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    return logger


def get_debug_mode():
    return _debug_mode


def print_stack_trace():
    """
    Log the current stack trace if debug mode is enabled.
    """
    if get_debug_mode():
        logger.error(traceback.format_exc())


logger = setup_logger(debug_mode=False)
