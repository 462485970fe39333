import logging
import os

# Package root logger; every `logging.getLogger(__name__)` under filmify.* propagates here
logger = logging.getLogger("filmify")
logger.setLevel(os.getenv("FILMIFY_LOG_LEVEL", "INFO").upper())

# Imported by both the API process and the Celery worker; install the handler once
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s] %(asctime)s %(name)s - %(message)s", "%Y-%m-%d %H:%M:%S")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
