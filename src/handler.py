"""
AWS Lambda handler for sending emails.

Thin orchestration layer that decodes the request and delegates to
MailJobProcessor. Accepts API Gateway proxy events (JSON string body) as
well as direct invocations with the job as payload.
"""

import base64
import binascii
import json
import logging
import os
from typing import Any, Dict

from domain.errors import JobError
from domain.mail_job_processor import MailJobProcessor, handle_error

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
mail_job_processor = MailJobProcessor()


def parse_job(event: Any) -> Any:
    """
    Extract the job payload from a Lambda event.

    Supported shapes:
    - API Gateway proxy: {"body": "<json>", "isBase64Encoded": false}
    - Wrapped payload: {"body": {...job...}}
    - Direct invocation: {...job...}

    Raises:
        JobError: Client error if the body is not valid JSON
    """
    if not isinstance(event, dict) or 'body' not in event:
        return event

    body = event['body']
    if not isinstance(body, (str, bytes)):
        return body

    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body)
        return json.loads(body)
    except (ValueError, binascii.Error):
        raise JobError.client("Request body is not valid JSON.")


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Send one email.

    Expected job format:
    {
        "initiator": "billing-service",
        "mail": {
            "from": {"name": "Billing", "address": "billing@example.com"},
            "to": "customer@example.com",
            "subject": "Your invoice",
            "text": "..." | "html": "..." | "template": {"id": "invoice", "amount": "42.00"}
        }
    }

    Returns:
        Lambda proxy response; body is {accepted, rejected, previewUrl?}
        on success or {error} on failure
    """
    logger.info("=" * 70)
    logger.info(f"Mail job received (request_id={getattr(context, 'aws_request_id', None)})")

    try:
        job = parse_job(event)
    except JobError as e:
        response = handle_error(e)
    else:
        response = mail_job_processor.process(job)

    if response.success:
        logger.info(f"✓ Mail job completed: {response!r}")
    else:
        logger.warning(f"⚠ Mail job failed: {response!r}")
    logger.info("=" * 70)

    return response.to_lambda_response()


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    config = mail_job_processor.config
    return {
        'statusCode': 200,
        'body': json.dumps({
            'status': 'healthy',
            'environment': config.environment,
            'debug': config.debug,
            'transportConfigured': config.debug or bool(config.mail_host),
            'templateSource': config.template_source
        })
    }
