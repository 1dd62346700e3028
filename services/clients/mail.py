"""Mail collaborator used by EMAIL nodes.

The reference deployment never talks to a mail server: delivery is simulated
and logged so runs stay reproducible.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Protocol
from shared.constants import MAIL_OUTBOX_LIMIT


class MailDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class SentMail:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        ...


class SimulatedMailer:
    """Logs messages instead of delivering them, keeping the most recent in outbox"""

    def __init__(self, fail: Optional[bool] = None, outbox_limit: int = MAIL_OUTBOX_LIMIT):
        if fail is None:
            fail = os.getenv("SIMULATED_MAIL_FAIL", "").lower() in ("1", "true", "yes")
        self.fail = fail
        self.outbox: Deque[SentMail] = deque(maxlen=outbox_limit)

    def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise MailDeliveryError("Recipient address required")
        if self.fail:
            raise MailDeliveryError(f"Simulated delivery failure for {to}")

        self.outbox.append(SentMail(to=to, subject=subject, body=body))
        logging.info("Email delivery simulated", extra={"to": to, "subject": subject})
