import logging
import os
from datetime import datetime

from core.config import settings

def setup_logging(log_dir: str = None, level: str = None):
    """Configure logging for the application."""
    log_dir = log_dir or settings.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)

    today = datetime.now().strftime("%Y-%m-%d")
    log_file = os.path.join(log_dir, f"formpulse_{today}.log")

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    # Per-frame tracking details are only logged at DEBUG
    logging.getLogger('models.tracking').setLevel(logging.DEBUG)

    return logging.getLogger(__name__)
