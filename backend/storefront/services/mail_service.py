# Overview: Outbound email (verification links) over SMTP with STARTTLS.

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from flask import current_app

from ..errors import InternalError


@dataclass
class OutgoingMail:
    recipient: str
    subject: str
    html_body: str


class Mailer:
    """
    SMTP sender.

    With suppress=True nothing leaves the process; messages are appended to
    ``outbox`` instead (test and local development mode).
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        suppress: bool = False,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.suppress = suppress
        self.outbox: list[OutgoingMail] = []

    def send(self, mail: OutgoingMail) -> None:
        if self.suppress:
            self.outbox.append(mail)
            return

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = mail.recipient
        message["Subject"] = mail.subject
        message.set_content(mail.html_body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            current_app.logger.exception("Failed to send mail to %s", mail.recipient)
            raise InternalError("Failed to send email") from exc

    def send_verification(self, recipient: str, token: str, base_url: str) -> str:
        """Send the verification link; returns the link that was mailed."""
        link = f"{base_url.rstrip('/')}/verify/{token}"
        self.send(OutgoingMail(
            recipient=recipient,
            subject="Email verification",
            html_body=f'<a href="{link}">Click here to verify your email</a>',
        ))
        return link


def get_mailer() -> Mailer:
    return current_app.extensions["mailer"]
