"""
Mail job pipeline - core business logic.

This module handles the end-to-end processing of a "send email" job:
1. Validate the job and compose the outbound message
2. Render the referenced template (if the job uses one)
3. Send the message through the SMTP or sandbox transport
4. Map the outcome to a response (200, 400 or 500)

Errors are caught and returned as HandlerResponse; no exceptions propagate
out of process().
"""

import logging
from typing import Any, Optional

from .errors import JobError
from .job_validator import JobValidator
from .models import HandlerResponse
from config import MailerConfig, load_config
from services import dispatch
from services.templates import TemplateStore

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Unknown error"


def handle_error(error: BaseException) -> HandlerResponse:
    """
    Map an exception to an error response.

    Client errors are returned with their message and not logged as errors.
    Server errors log their cause; unclassified errors are logged in full
    and reported as "Unknown error".

    Args:
        error: Exception raised while processing a job

    Returns:
        HandlerResponse: 400 or 500 response with an 'error' message
    """
    if not isinstance(error, JobError):
        logger.error(f"Unexpected error: {error!r}", exc_info=error)
        return HandlerResponse.error(500, UNKNOWN_ERROR_MESSAGE)

    if error.is_client_error:
        logger.info(f"Rejected job: {error.message}")
        return HandlerResponse.error(error.kind.status_code, error.message)

    cause = error.cause if error.cause is not None else error
    logger.error(f"{error.message} Cause: {cause!r}", exc_info=cause)
    return HandlerResponse.error(error.kind.status_code, error.message)


class MailJobProcessor:
    """
    Handles end-to-end mail job processing.

    Validates a job, renders its template, sends the message and returns
    a HandlerResponse for explicit success/failure handling.

    Args:
        config: Mailer configuration (read from the environment if omitted)
    """

    def __init__(self, config: Optional[MailerConfig] = None):
        """Initialize processor with its configuration and template store."""
        self.config = config if config is not None else load_config()
        self.template_store = TemplateStore(
            templates_dir=self.config.templates_dir,
            bucket=self.config.template_bucket,
            key_prefix=self.config.template_key_prefix
        )
        self.validator = JobValidator(self.template_store)

    def process(self, job: Any) -> HandlerResponse:
        """
        Process a single mail job.

        Args:
            job: Decoded job payload

        Returns:
            HandlerResponse with status 200, 400 or 500 (errors logged)
        """
        try:
            message = self.validator.build_message(job)
            logger.info(
                f"Validated: to={message.to}, subject={message.subject}, "
                f"body={message.body.kind.value} ({len(message.body.content)} chars)"
            )

            info = dispatch.send(message, self.config.debug, self.config)

            response = HandlerResponse.from_delivery(info, include_preview=self.config.debug)
            logger.info(f"Sent: accepted={info.accepted}, rejected={info.rejected}")
            return response

        except Exception as e:
            return handle_error(e)
