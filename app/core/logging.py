"""Process-wide logging setup shared by the API, edge router and client entrypoints."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler on the root logger and apply the requested level.

    `basicConfig` is a no-op once a handler exists, so repeated calls only
    adjust the level.
    """

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
