"""JSON logging with a correlation id carried through API requests and workflow runs."""

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from pythonjsonlogger import jsonlogger

correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')


class CorrelationIdFilter(logging.Filter):
    """Adds correlation_id to all log records"""

    def filter(self, record):
        record.correlation_id = correlation_id_var.get('')
        return True


def setup_logging(service_name: str) -> None:
    """Sets up JSON logging on stdout; LOG_LEVEL overrides the INFO default"""
    logger = logging.getLogger()
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(correlation_id)s %(message)s',
        rename_fields={
            'asctime': 'timestamp',
            'name': 'logger',
            'levelname': 'level',
        }
    )

    json_handler.setFormatter(formatter)
    json_handler.addFilter(CorrelationIdFilter())
    logger.addHandler(json_handler)
    logging.info(f"{service_name} logging configured", extra={"service": service_name})


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Temporarily tags log records with correlation_id, keeping an outer id if one is set"""
    outer = correlation_id_var.get('')
    token = correlation_id_var.set(outer or correlation_id)
    try:
        yield correlation_id_var.get('')
    finally:
        correlation_id_var.reset(token)
