import logging, sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"

# third-party loggers that drown out catalog messages at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "urllib3")

def setup_logging(level: str = "INFO"):
    logger = logging.getLogger()
    if logger.handlers:  # don’t double add during reload
        return
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(h)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
