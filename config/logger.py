import logging
import os
from logging.handlers import TimedRotatingFileHandler


def setup_logging(log_dir=None):
    log_dir = log_dir or os.getenv("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, "collabflow.log")

    # Rotates at midnight, keeps the last 7 days
    file_handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=7, encoding='utf-8')

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=[
            file_handler,
            logging.StreamHandler()
        ]
    )
    # Telegram polling is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("CollabFlow")

logger = setup_logging()
