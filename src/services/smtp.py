"""
SMTP transport for outbound messages.

The envelope is driven command by command (MAIL FROM, one RCPT TO per
recipient, DATA) so that accepted and rejected recipients can be reported
individually, along with the server's final reply.
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email import policy
from email.message import EmailMessage
from email.utils import formatdate, getaddresses, make_msgid, parseaddr
from typing import List, Optional

from domain.models import DeliveryInfo, OutboundMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmtpSettings:
    """
    SMTP connection settings.

    Attributes:
        host: SMTP server host
        port: SMTP server port
        secure: True for implicit TLS (SMTPS); False for plain SMTP
            upgraded with STARTTLS when the server offers it
        user: Login user (no login when unset)
        password: Login password
        timeout: Socket timeout in seconds
    """
    host: str
    port: int = 587
    secure: bool = True
    user: Optional[str] = None
    password: Optional[str] = None
    timeout: int = 30

    def __repr__(self) -> str:
        return (
            f"SmtpSettings(host={self.host}, port={self.port}, "
            f"secure={self.secure}, user={self.user})"
        )


def build_email(message: OutboundMessage) -> EmailMessage:
    """
    Convert an OutboundMessage into a MIME message.

    Args:
        message: Validated outbound message

    Returns:
        EmailMessage: Message with From/To/Subject/Date/Message-ID headers
            and a single text/plain or text/html part
    """
    msg = EmailMessage()
    msg['From'] = message.from_header
    msg['To'] = message.to
    msg['Subject'] = message.subject
    msg['Date'] = formatdate(localtime=True)
    msg['Message-ID'] = make_msgid()

    if message.body.is_html:
        msg.set_content(message.body.content, subtype='html')
    else:
        msg.set_content(message.body.content)

    return msg


def _recipients(to: str) -> List[str]:
    return [address for _, address in getaddresses([to]) if address]


def _decode(reply) -> str:
    if isinstance(reply, bytes):
        return reply.decode('utf-8', errors='replace')
    return str(reply)


class SmtpTransport:
    """
    Sends messages over one SMTP connection per send.

    Args:
        settings: Connection settings
    """

    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        """
        Open, secure and authenticate a connection.

        Raises:
            smtplib.SMTPException, OSError: If connecting or login fails
        """
        settings = self.settings
        context = ssl.create_default_context()

        if settings.secure:
            smtp = smtplib.SMTP_SSL(settings.host, settings.port,
                                    timeout=settings.timeout, context=context)
        else:
            smtp = smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout)

        try:
            smtp.ehlo()
            if not settings.secure and smtp.has_extn('starttls'):
                smtp.starttls(context=context)
                smtp.ehlo()

            if settings.user:
                smtp.login(settings.user, settings.password or '')
        except Exception:
            smtp.close()
            raise

        logger.info(f"Connected to SMTP server {settings.host}:{settings.port} (secure={settings.secure})")
        return smtp

    def send(self, message: OutboundMessage) -> DeliveryInfo:
        """
        Send a message.

        Args:
            message: Validated outbound message

        Returns:
            DeliveryInfo: Accepted/rejected recipients and the server reply

        Raises:
            ValueError: If the message has no usable recipient address
            smtplib.SMTPException: If the server refuses the sender, all
                recipients or the message data
            OSError: On connection failures
        """
        recipients = _recipients(message.to)
        if not recipients:
            raise ValueError(f"No recipient address in: '{message.to}'")

        envelope_from = parseaddr(message.from_header)[1]
        msg = build_email(message)

        smtp = self._connect()
        try:
            code, reply = smtp.mail(envelope_from)
            if code != 250:
                smtp.rset()
                raise smtplib.SMTPSenderRefused(code, reply, envelope_from)

            accepted = []
            rejected = []
            refusals = {}
            for recipient in recipients:
                code, reply = smtp.rcpt(recipient)
                if code in (250, 251):
                    accepted.append(recipient)
                else:
                    rejected.append(recipient)
                    refusals[recipient] = (code, reply)
                    logger.warning(f"Recipient refused: {recipient} ({code} {_decode(reply)})")

            if not accepted:
                smtp.rset()
                raise smtplib.SMTPRecipientsRefused(refusals)

            code, reply = smtp.data(msg.as_bytes(policy=policy.SMTP))
            if code != 250:
                smtp.rset()
                raise smtplib.SMTPDataError(code, reply)
        finally:
            try:
                smtp.quit()
            except (smtplib.SMTPException, OSError) as e:
                logger.debug(f"SMTP quit failed: {e}")
                smtp.close()

        response = f"{code} {_decode(reply)}"
        logger.info(f"Message {msg['Message-ID']} sent: accepted={len(accepted)}, rejected={len(rejected)}")

        return DeliveryInfo(
            accepted=accepted,
            rejected=rejected,
            message_id=str(msg['Message-ID']),
            response=response
        )
