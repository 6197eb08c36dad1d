"""
Structured Logging Configuration Module

One JSON object per line. Banking records carry first-class fields
(account numbers, amounts, transaction and card ids) so money movements
can be traced without parsing messages.
"""

import logging
import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, TextIO

from .money import format_amount

# Record attributes promoted to top-level JSON keys, in output order
BANKING_FIELDS = (
    "user_id",
    "action",
    "account_number",
    "counterparty",
    "amount",
    "transaction_id",
    "card_id",
)


class JSONFormatter(logging.Formatter):
    """Renders a record and its banking fields as a JSON line"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in BANKING_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "banque_rupt",
                  stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Install the JSON handler on the application logger.

    Calling it again replaces the handler instead of stacking a second one.
    """
    logger = logging.getLogger(logger_name)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False
    return logger


def get_logger(name: str = "banque_rupt") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str, action: str,
               user_id: Optional[str] = None, **fields: Any) -> None:
    """
    Log a banking action.

    Args:
        logger: component logger
        level: info, warning, error...
        message: human-readable summary
        action: short verb such as "transfer" or "issue_card"
        user_id: acting user, when known
        **fields: any of account_number, counterparty, amount,
            transaction_id, card_id; Decimal amounts are written as "12.50"

    Raises:
        TypeError: for a field outside BANKING_FIELDS
    """
    unknown = set(fields) - set(BANKING_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log fields: {', '.join(sorted(unknown))}")

    record_fields = {"action": action}
    if user_id:
        record_fields["user_id"] = user_id
    for name, value in fields.items():
        if value is None:
            continue
        if isinstance(value, Decimal):
            value = format_amount(value)
        record_fields[name] = value

    logger.log(getattr(logging, level.upper()), message, extra=record_fields)
