"""
city_info.services.mail

Notification mail services.

Responsibilities:
- Provide a local (development) and a cloud mail service behind one protocol.
- Select the implementation at runtime from the environment.
"""

from __future__ import annotations

from typing import Protocol

from city_info.observability.logging import Diagnostics
from city_info.settings import Settings


class MailService(Protocol):
    def send(self, subject: str, message: str) -> None: ...


class LocalMailService:
    transport = "local"

    def __init__(self, *, mail_to: str, mail_from: str, diagnostics: Diagnostics) -> None:
        self._mail_to = mail_to
        self._mail_from = mail_from
        self._log = diagnostics.get_logger(__name__)

    def send(self, subject: str, message: str) -> None:
        # Development: nothing leaves the process; the mail is only logged.
        self._log.info(
            "mail.sent",
            transport=self.transport,
            mail_from=self._mail_from,
            mail_to=self._mail_to,
            subject=subject,
            message=message,
        )


class CloudMailService(LocalMailService):
    transport = "cloud"


def build_mail_service(settings: Settings, *, diagnostics: Diagnostics) -> MailService:
    cls = LocalMailService if settings.is_development else CloudMailService
    return cls(mail_to=settings.mail_to, mail_from=settings.mail_from, diagnostics=diagnostics)


# --- Module Notes -----------------------------------------------------------
# The cloud transport is a placeholder with the same contract; wiring a real provider
# only touches `CloudMailService.send`.
