"""Setting up a file logger for operational events.

Returns a lazily initialized module logger that appends to
`{logging_dir}/{filename}` with a timestamp and level prefix. Scans and
cleanup runs go here so they can be grepped apart from request logs.
"""
import os
from logging import FileHandler, Formatter, getLogger, INFO
from ulasis.app.core.config import settings

def get_logs_writer_logger(logging_dir=settings.LOG_PATH, filename='events.log'):
    os.makedirs(logging_dir, exist_ok=True)
    log_path = os.path.join(logging_dir, filename)

    logger = getLogger("ulasis.events")

    if logger.handlers:
        return logger

    logger.setLevel(INFO)
    logger.propagate = False

    handler = FileHandler(log_path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)

    return logger
