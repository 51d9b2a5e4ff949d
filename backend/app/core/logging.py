# backend/app/core/logging.py
"""
Configuration du logging + émission d'événements structurés.

Les événements métier passent par log_event() : le nom de l'événement
et les identifiants (registration_id, journey_id, ...) sont attachés
comme attributs du LogRecord. Les tests lisent caplog.records au lieu
de parser les messages.
"""
import logging
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    context = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
    message = f"{event} {context}" if context else event
    logger.log(level, message, exc_info=exc_info, extra={"event": event, **fields})
