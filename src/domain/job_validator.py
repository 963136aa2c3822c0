"""
Job validation: turns an inbound job payload into an OutboundMessage.

Fields are checked in a fixed order and the first violation raises a
client-kind JobError with a field-specific message. Template rendering is
the only step that touches I/O; its errors propagate unchanged.
"""

import getpass
import logging
import re
import socket
from email.utils import quote
from typing import Any, Dict

from .errors import JobError
from .models import BodyKind, MessageBody, OutboundMessage, TemplateReference
from services.templates import TemplateStore, render_template

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


def _single_line(value: Any) -> str:
    """Collapse line breaks to spaces; header values must fit on one line."""
    return _LINE_BREAKS.sub(" ", str(value))


def _local_user() -> str:
    """Name of the user running the process, used when 'from.name' is missing."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        # No passwd entry for the uid (common in containers)
        return 'mailer'


def _local_host() -> str:
    """Host name, used when 'from.address' is missing."""
    return socket.gethostname()


class JobValidator:
    """
    Validates mail jobs and composes outbound messages.

    Args:
        template_store: Source of templates for jobs that reference one
    """

    def __init__(self, template_store: TemplateStore):
        self.template_store = template_store

    def build_message(self, job: Any) -> OutboundMessage:
        """
        Validate a job and build the message to send.

        Args:
            job: Decoded job payload ({"initiator": ..., "mail": {...}})

        Returns:
            OutboundMessage: Message with exactly one body representation

        Raises:
            JobError: Client error naming the first invalid field, or any
                error raised while rendering a template
        """
        mail = job.get('mail') if isinstance(job, dict) else None
        if not isinstance(mail, dict):
            raise JobError.client("Field 'mail' not set.")

        logger.info(f"Validating job from initiator: {job.get('initiator')}")

        from_header = self._compose_from(mail.get('from'))

        to = mail.get('to')
        if isinstance(to, (list, tuple)):
            to = ', '.join(str(address) for address in to if address)
        if not to:
            raise JobError.client("Field 'to' not set.")

        subject = mail.get('subject')
        if not subject:
            raise JobError.client("Field 'subject' not set.")

        body = self._resolve_body(mail)

        return OutboundMessage(
            from_header=from_header,
            to=_single_line(to),
            subject=_single_line(subject),
            body=body
        )

    def _compose_from(self, sender: Any) -> str:
        """
        Compose the From header from the job's 'from' field.

        A plain string is taken as the address. Missing parts fall back to
        the local user and host name.
        """
        if sender is None or sender == '':
            raise JobError.client("Field 'from' not set.")

        if isinstance(sender, str):
            sender = {'address': sender}
        elif not isinstance(sender, dict):
            raise JobError.client("Field 'from' must contain 'name' and/or 'address'.")

        name = sender.get('name')
        address = sender.get('address')

        if name is None and address is None:
            raise JobError.client("Field 'name' and 'address' not set. Specify at least one.")

        display_name = _single_line(name or _local_user())
        return f'"{quote(display_name)}" <{_single_line(address or _local_host())}>'

    def _resolve_body(self, mail: Dict[str, Any]) -> MessageBody:
        """
        Pick the body representation.

        Priority: text > html > template
        """
        if mail.get('text'):
            return MessageBody(kind=BodyKind.TEXT, content=str(mail['text']))

        if mail.get('html'):
            return MessageBody(kind=BodyKind.HTML, content=str(mail['html']))

        template = mail.get('template')
        if template:
            if not isinstance(template, dict) or not template.get('id'):
                raise JobError.client("No template id specified.")

            reference = TemplateReference.from_payload(template)
            html = render_template(self.template_store, str(reference.template_id), reference.values)
            return MessageBody(kind=BodyKind.HTML, content=html)

        raise JobError.client("Field 'text' nor 'html' nor 'template' set.")
