from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple, Union
import json
import logging
import os

from dotenv import load_dotenv

from ..repositories.usage_log_repository import UsageLogRepository

load_dotenv()

logger = logging.getLogger(__name__)

USAGE_LOG_FILE = os.getenv("USAGE_LOG_FILE", "logs/usage.log")
USAGE_LOG_TIME_FORMAT = os.getenv("USAGE_LOG_TIME_FORMAT", "%Y/%m/%d %p%I:%M:%S %Z")


class UsageLogService:
    """
    Appends one human-readable line per user action and reports the running total.
    """

    def __init__(self, path: Union[str, Path] = USAGE_LOG_FILE, time_format: str = USAGE_LOG_TIME_FORMAT):
        self.repo = UsageLogRepository(path)
        self.time_format = time_format

    def format_entry(self, action: str, details: Optional[dict] = None, when: Optional[datetime] = None) -> str:
        when = when or datetime.now().astimezone()
        timestamp = when.strftime(self.time_format).strip()
        return f"[{timestamp}] Action: {action} | Details: {json.dumps(details or {}, ensure_ascii=False)}"

    def log_usage(self, action: str, details: Optional[dict] = None) -> Tuple[int, str]:
        """
        Returns:
            (int, str): total logged uses and the line that was written.
        Raises:
            OSError: the log file could not be written.
        """
        line = self.format_entry(action, details)
        self.repo.append(line)
        try:
            total = self.repo.count_entries()
        except OSError as err:
            logger.warning(f"Usage log written but could not be re-read: {err}")
            total = 0
        return total, line
