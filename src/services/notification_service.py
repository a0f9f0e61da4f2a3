# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
from typing import Optional, Sequence
from src.core.models import NotificationLevel
from src.infrastructure.db.repository import LogRepository

logger = logging.getLogger(__name__)

MESSAGES = {
    "update.datasource.nonespecified": "No datasource configured, nothing to synchronize",
    "update.datasource.unavailable": "Datasource {0} is not available, skipping it",
    "update.title.novideo": "No video file found for title {0}",
    "message.update.threadcrashed": "A synchronization task crashed: {0}",
}

_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARN: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class NotificationService:
    """
    NotificationSink writing user visible messages to the log and the operation log table.
    """

    def __init__(self, log_repo: Optional[LogRepository] = None):
        self.log_repo = log_repo

    @staticmethod
    def render(message_key: str, args: Sequence[str] = ()) -> str:
        template = MESSAGES.get(message_key)
        if template is None:
            return " ".join([message_key, *map(str, args)])
        try:
            return template.format(*args)
        except IndexError:
            return template

    def push(self, level: NotificationLevel, subject: str, message_key: str, args: Sequence[str] = ()):
        message = self.render(message_key, args)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), "%s: %s", subject, message)
        if self.log_repo:
            self.log_repo.add(level.value, subject, message)
