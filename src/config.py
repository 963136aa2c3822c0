"""
Environment-sourced configuration for the mailer.

All settings are read once, when the processor is created at module import,
and kept in an immutable MailerConfig. Nothing else in the code base reads
os.environ for mail settings.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from domain.errors import ConfigurationError
from services.smtp import SmtpSettings

logger = logging.getLogger(__name__)

# src/config.py -> src/templates/
# In Lambda: /var/task/templates/
DEFAULT_TEMPLATES_DIR = Path(__file__).parent / 'templates'

DEFAULT_MAIL_PORT = 587
DEFAULT_MAIL_TIMEOUT = 30

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('0', 'false', 'no', 'off')


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    """
    Parse a boolean environment variable.

    Raises:
        ValueError: If the value is not a recognised boolean
    """
    if value is None or value.strip() == '':
        return default

    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False

    raise ValueError(f"{name} must be a boolean (true/false), got: '{value}'")


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == '':
        return default

    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: '{value}'")


def _optional(value: Optional[str]) -> Optional[str]:
    return value if value else None


@dataclass(frozen=True)
class MailerConfig:
    """
    Mailer settings.

    Attributes:
        debug: Send through the Ethereal sandbox instead of MAIL_HOST
        mail_host: SMTP host (required unless debug)
        mail_port: SMTP port
        mail_secure: Use implicit TLS for the SMTP connection
        mail_user_name: SMTP login user
        mail_user_pass: SMTP login password
        mail_timeout: SMTP socket timeout in seconds
        templates_dir: Local directory holding '{id}.html' templates
        template_bucket: S3 bucket holding templates (overrides templates_dir)
        template_key_prefix: Key prefix of templates inside template_bucket
        environment: Deployment environment name
    """
    debug: bool = False
    mail_host: Optional[str] = None
    mail_port: int = DEFAULT_MAIL_PORT
    mail_secure: bool = True
    mail_user_name: Optional[str] = None
    mail_user_pass: Optional[str] = None
    mail_timeout: int = DEFAULT_MAIL_TIMEOUT
    templates_dir: Path = DEFAULT_TEMPLATES_DIR
    template_bucket: Optional[str] = None
    template_key_prefix: str = 'templates/'
    environment: str = 'dev'

    @property
    def template_source(self) -> str:
        """Where templates are loaded from, for logging and health checks."""
        if self.template_bucket:
            return f"s3://{self.template_bucket}/{self.template_key_prefix}"
        return str(self.templates_dir)

    def smtp_settings(self) -> SmtpSettings:
        """
        Build SMTP connection settings for the production transport.

        Raises:
            ConfigurationError: If MAIL_HOST is not set
        """
        if not self.mail_host:
            raise ConfigurationError("Mail transport is not configured.")

        return SmtpSettings(
            host=self.mail_host,
            port=self.mail_port,
            secure=self.mail_secure,
            user=self.mail_user_name,
            password=self.mail_user_pass,
            timeout=self.mail_timeout
        )

    def __repr__(self) -> str:
        """Representation for logging; never includes the password."""
        return (
            f"MailerConfig(debug={self.debug}, mail_host={self.mail_host}, "
            f"mail_port={self.mail_port}, mail_secure={self.mail_secure}, "
            f"mail_user_name={self.mail_user_name}, "
            f"template_source={self.template_source}, environment={self.environment})"
        )


def load_config(environ: Optional[Mapping[str, str]] = None) -> MailerConfig:
    """
    Read MailerConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        MailerConfig: Populated configuration

    Raises:
        ValueError: If a boolean or integer variable has an invalid value
    """
    env = os.environ if environ is None else environ

    config = MailerConfig(
        debug=_parse_bool('DEBUG', env.get('DEBUG'), False),
        mail_host=_optional(env.get('MAIL_HOST')),
        mail_port=_parse_int('MAIL_PORT', env.get('MAIL_PORT'), DEFAULT_MAIL_PORT),
        mail_secure=_parse_bool('MAIL_SECURE', env.get('MAIL_SECURE'), True),
        mail_user_name=_optional(env.get('MAIL_USER_NAME')),
        mail_user_pass=_optional(env.get('MAIL_USER_PASS')),
        mail_timeout=_parse_int('MAIL_TIMEOUT', env.get('MAIL_TIMEOUT'), DEFAULT_MAIL_TIMEOUT),
        templates_dir=Path(env.get('TEMPLATES_DIR') or DEFAULT_TEMPLATES_DIR),
        template_bucket=_optional(env.get('TEMPLATE_BUCKET')),
        template_key_prefix=env.get('TEMPLATE_KEY_PREFIX', 'templates/'),
        environment=env.get('ENVIRONMENT', 'dev')
    )

    if not config.debug and not config.mail_host:
        logger.warning("MAIL_HOST is not set; sending will fail unless DEBUG is enabled")

    logger.info(f"Loaded configuration: {config!r}")
    return config
