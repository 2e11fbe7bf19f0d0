import logging


def setup_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(name)s:%(funcName)s] %(levelname)-8s : %(message)s',
    )
    # asyncio reports every write on an aborted socket at warning level
    logging.getLogger("asyncio").setLevel(logging.ERROR)
