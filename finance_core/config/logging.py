"""
Structured logging setup.

Every service logs through structlog with snake_case event names and
keyword context, e.g. ``logger.info("transaction_saved", transaction_id=...)``.
The ledger engine does not log.
"""

import logging

import structlog

from finance_core.config.settings import get_settings

_configured = False


def configure_logging(force: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger once.

    Level and renderer come from AppSettings (log_level, log_json).
    Pass force=True to reconfigure after settings changed.
    """
    global _configured
    if _configured and not force:
        return

    app = get_settings().app
    level = getattr(logging, app.log_level)
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if app.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, configuring logging on first use."""
    configure_logging()
    return structlog.get_logger(name)
