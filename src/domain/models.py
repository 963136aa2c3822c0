"""
Data models for the mail job domain.

These type-safe data structures define clear contracts between components.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BodyKind(str, Enum):
    """Representation of an outbound message body."""
    TEXT = 'text'
    HTML = 'html'


@dataclass(frozen=True)
class MessageBody:
    """
    Body of an outbound message.

    Attributes:
        kind: BodyKind.TEXT for plain text, BodyKind.HTML for markup
        content: The body itself
    """
    kind: BodyKind
    content: str

    @property
    def is_html(self) -> bool:
        return self.kind is BodyKind.HTML


@dataclass(frozen=True)
class OutboundMessage:
    """
    Fully validated message, ready to be handed to a transport.

    Attributes:
        from_header: Composed From header, e.g. '"Jane" <jane@example.com>'
        to: Recipient list as given by the caller (comma separated allowed)
        subject: Subject line
        body: Exactly one body representation
    """
    from_header: str
    to: str
    subject: str
    body: MessageBody


@dataclass
class TemplateReference:
    """
    Reference to a named template plus its substitution values.

    Attributes:
        template_id: Template name, resolved to '{template_id}.html'
        values: Mapping of element id to the text inserted into that element
    """
    template_id: str
    values: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'TemplateReference':
        """
        Split a job's 'template' object into its id and substitution values.

        Every key other than 'id' is a substitution value. Non-string values
        are converted with str(); None becomes an empty string.
        """
        values = {
            str(key): '' if value is None else str(value)
            for key, value in payload.items()
            if key != 'id'
        }
        return cls(template_id=payload.get('id'), values=values)


@dataclass
class DeliveryInfo:
    """
    Outcome of a successful send.

    Attributes:
        accepted: Recipients accepted by the SMTP server
        rejected: Recipients refused by the SMTP server
        message_id: Message-ID header of the sent message
        response: Final server reply to the DATA command
        preview_url: Web preview of the message (sandbox transport only)
    """
    accepted: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)
    message_id: Optional[str] = None
    response: Optional[str] = None
    preview_url: Optional[str] = None


@dataclass
class HandlerResponse:
    """
    Normalized response produced for every job.

    Attributes:
        status: HTTP status code (200, 400 or 500)
        body: JSON-serializable response payload
    """
    status: int
    body: Dict[str, Any]

    @property
    def success(self) -> bool:
        return self.status == 200

    @classmethod
    def from_delivery(cls, info: DeliveryInfo, include_preview: bool) -> 'HandlerResponse':
        """Build the 200 response; previewUrl is only reported when requested."""
        body: Dict[str, Any] = {}
        if include_preview:
            body['previewUrl'] = info.preview_url
        body['accepted'] = info.accepted
        body['rejected'] = info.rejected
        return cls(status=200, body=body)

    @classmethod
    def error(cls, status: int, message: str) -> 'HandlerResponse':
        return cls(status=status, body={'error': message})

    def to_lambda_response(self) -> Dict[str, Any]:
        """Convert to the API Gateway / Lambda proxy response format."""
        return {
            'statusCode': self.status,
            'headers': {
                'Content-Type': 'application/json'
            },
            'body': json.dumps(self.body)
        }

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        return f"HandlerResponse(status={self.status}, body={self.body})"
