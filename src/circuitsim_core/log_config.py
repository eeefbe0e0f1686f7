# src/circuitsim_core/log_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"


def setup_logging(level=logging.INFO, stream=None):
    """ Configures a single console handler on the root logger. """
    log_formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()

    # Drop handlers left over from a previous configuration
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(log_formatter)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    logging.debug("Logging configured at level %s.", logging.getLevelName(level))
