import logging
import sys
from datetime import datetime


class HarvesterFormatter(logging.Formatter):
    """
    One line per record, worker thread as context:
    [ Tue Jan 06 05:32:41 AM 2026 ] : WARNING : worker-3 : Message
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p %Y")
        line = f"[ {timestamp} ] : {record.levelname} : {record.threadName} : {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logger(name="harvester", log_file=None, level=logging.INFO):
    """Attach console (stderr) and optional file handlers to the package logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers if setup_logger is called multiple times
    if logger.handlers:
        return logger

    formatter = HarvesterFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
