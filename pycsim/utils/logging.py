import logging

LOG_FORMAT = "%(levelname)s %(message)s"


def get_logger(name: str = "pycsim", level: int = logging.INFO):
    """Returns a logger, configuring the root handler on first use."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger(name)
