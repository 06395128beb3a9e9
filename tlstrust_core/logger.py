import logging, json, sys, time, os

LOG_LEVEL_ENV = "TLSTRUST_LOG_LEVEL"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; hostnames and URIs are escaped properly."""

    converter = time.gmtime

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def get_logger(name="TLSTrust", level=None, to_file=None):
    """Unified structured logger for all TLS trust components."""
    logger = logging.getLogger(name)
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    logger.setLevel(level)

    if not logger.handlers:
        formatter = JsonFormatter()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
