"""
Dispatch adapter: picks a transport and sends an outbound message.

In debug mode messages go to a disposable Ethereal sandbox account and the
result carries a preview URL; otherwise the SMTP server from MAIL_* settings
is used. Any transport failure becomes a server-kind JobError with the
original exception attached as its cause.
"""

import logging
import smtplib

import requests

from config import MailerConfig
from domain.errors import JobError
from domain.models import DeliveryInfo, OutboundMessage
from integrations import ethereal
from services.smtp import SmtpSettings, SmtpTransport

logger = logging.getLogger(__name__)

SEND_FAILED_MESSAGE = "Sending emails failed."


def get_transport(config: MailerConfig) -> SmtpTransport:
    """
    Transport for the SMTP server configured through MAIL_* variables.

    Raises:
        ConfigurationError: If MAIL_HOST is not set
    """
    return SmtpTransport(config.smtp_settings())


def get_testing_transport(account: ethereal.TestAccount, timeout: int) -> SmtpTransport:
    """Transport sending through an Ethereal sandbox account."""
    return SmtpTransport(SmtpSettings(
        host=account.smtp_host,
        port=account.smtp_port,
        secure=account.smtp_secure,
        user=account.user,
        password=account.password,
        timeout=timeout
    ))


def send(message: OutboundMessage, debug_mode: bool, config: MailerConfig) -> DeliveryInfo:
    """
    Send a message through the real or the sandbox transport.

    Args:
        message: Validated outbound message
        debug_mode: Send through Ethereal and report a preview URL
        config: Mailer configuration

    Returns:
        DeliveryInfo: Accepted/rejected recipients (and preview URL in debug mode)

    Raises:
        ConfigurationError: If the real transport is not configured
        JobError: "Sending emails failed." (server kind) on transport failure
    """
    account = None

    try:
        if debug_mode:
            account = ethereal.create_test_account()
            transport = get_testing_transport(account, config.mail_timeout)
        else:
            transport = get_transport(config)

        logger.info(f"Sending to {message.to} via {transport.settings!r}")
        info = transport.send(message)

    except (smtplib.SMTPException, OSError, ValueError,
            requests.RequestException, ethereal.EtherealError) as e:
        raise JobError.server(SEND_FAILED_MESSAGE, e)

    if account is not None:
        info.preview_url = ethereal.preview_url(info.response, account.web)
        logger.info(f"Preview URL: {info.preview_url}")

    return info
