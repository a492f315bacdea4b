# campaign_panel/core/interfaces/mail_sender.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    html: str
    text: str | None = None


class MailSender(Protocol):
    def send(self, message: MailMessage) -> bool:
        ...
