import sys

from loguru import logger

FORMAT = "{line: >4}:{level}:\t{message}"


def configure_logging(level="DEBUG", sink=sys.stderr) -> int:
    """
    Show the debug output of the parser.

    The package is disabled in loguru on import, this replaces all handlers
    by a single one writing to `sink` and enables the package.

    :returns: the id of the new handler
    """
    logger.remove()  # All configured handlers are removed
    handler_id = logger.add(sink, format=FORMAT, level=level)
    logger.enable("apkaxml")
    return handler_id
