"""Shared utilities."""

import uuid
from datetime import datetime, timezone


def generate_run_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
