"""
Ethereal Email sandbox accounts.

Ethereal (https://ethereal.email) is a fake SMTP service: messages are
accepted but never delivered, and each one can be viewed in a browser.
A disposable account is provisioned through the public nodemailer API.

Usage:
    from integrations import ethereal

    account = ethereal.create_test_account()
    # ... send through account.smtp_host with account.user / account.password
    url = ethereal.preview_url(server_reply, account.web)
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

ETHEREAL_API_URL = 'https://api.nodemailer.com/user'
ETHEREAL_WEB_URL = 'https://ethereal.email'
REQUESTOR = 'freeway-mailer'
REQUEST_TIMEOUT = 10

# Final DATA reply, e.g. "250 Accepted [STATUS=new MSGID=YJ3nTq...]"
_REPLY_DETAILS = re.compile(r'\[([^\]]+)\]\s*$')


class EtherealError(Exception):
    """Raised when a test account cannot be provisioned."""
    pass


@dataclass(frozen=True)
class TestAccount:
    """
    Disposable Ethereal account.

    Attributes:
        user: SMTP user (also the account's address)
        password: SMTP password
        smtp_host: SMTP host to send through
        smtp_port: SMTP port
        smtp_secure: Whether the SMTP port uses implicit TLS
        web: Base URL of the message preview site
    """
    __test__ = False  # not a pytest test class

    user: str
    password: str
    smtp_host: str = 'smtp.ethereal.email'
    smtp_port: int = 587
    smtp_secure: bool = False
    web: str = ETHEREAL_WEB_URL

    def __repr__(self) -> str:
        return f"TestAccount(user={self.user}, smtp={self.smtp_host}:{self.smtp_port})"


def create_test_account() -> TestAccount:
    """
    Provision a new Ethereal account.

    Returns:
        TestAccount: Credentials and SMTP settings

    Raises:
        requests.RequestException: On HTTP failures
        EtherealError: If the API reports an error or the reply is malformed
    """
    logger.info("Requesting Ethereal test account")

    response = requests.post(
        ETHEREAL_API_URL,
        json={'requestor': REQUESTOR, 'version': '1.0.0'},
        timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()

    try:
        data = response.json()
    except ValueError as e:
        raise EtherealError(f"Invalid response from Ethereal API: {e}")

    if data.get('status') != 'success':
        raise EtherealError(f"Ethereal API error: {data.get('error', 'unknown error')}")

    try:
        smtp = data.get('smtp', {})
        account = TestAccount(
            user=data['user'],
            password=data['pass'],
            smtp_host=smtp.get('host', 'smtp.ethereal.email'),
            smtp_port=int(smtp.get('port', 587)),
            smtp_secure=bool(smtp.get('secure', False)),
            web=data.get('web', ETHEREAL_WEB_URL)
        )
    except (KeyError, TypeError, ValueError) as e:
        raise EtherealError(f"Malformed Ethereal account data: {e}")

    logger.info(f"Ethereal test account created: {account.user}")
    return account


def preview_url(server_reply: Optional[str], web: str = ETHEREAL_WEB_URL) -> Optional[str]:
    """
    Derive the message preview URL from Ethereal's reply to DATA.

    Args:
        server_reply: Final reply, e.g. "250 Accepted [STATUS=new MSGID=abc]"
        web: Base URL of the preview site

    Returns:
        str: Preview URL, or None if the reply carries no message id

    Example:
        >>> preview_url("250 Accepted [STATUS=new MSGID=abc123]")
        'https://ethereal.email/message/abc123'
    """
    if not server_reply:
        return None

    match = _REPLY_DETAILS.search(server_reply)
    if not match:
        return None

    details = {}
    for part in match.group(1).split():
        key, _, value = part.partition('=')
        details[key.upper()] = value

    msgid = details.get('MSGID')
    if not msgid:
        return None

    return f"{web.rstrip('/')}/message/{msgid}"
