"""
S3 operations utilities for Lambda handlers.

Used to load mail templates from a bucket instead of the packaged
templates/ directory, so templates can change without a redeploy.
"""

import logging
from typing import List

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=30      # 30 seconds max for reading templates
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=30s, max_attempts=1")


def list_object_names(bucket: str, prefix: str) -> List[str]:
    """
    List object names directly under a prefix.

    Names are returned relative to the prefix; objects in deeper
    "sub-directories" are skipped.

    Args:
        bucket: S3 bucket name
        prefix: Key prefix, e.g. "templates/"

    Returns:
        list: Object names without the prefix

    Raises:
        ClientError: If the S3 operation fails

    Example:
        >>> list_object_names("my-template-bucket", "templates/")
        ['welcome.html', 'reset-password.html']
    """
    names = []
    paginator = s3_client.get_paginator('list_objects_v2')

    try:
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            for obj in page.get('Contents', []):
                name = obj['Key'][len(prefix):]
                if name and '/' not in name:
                    names.append(name)
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        logger.error(f"Failed to list s3://{bucket}/{prefix}: error_code={error_code}")
        raise

    logger.info(f"Listed {len(names)} object(s) in s3://{bucket}/{prefix}")
    return names


def fetch_text(bucket: str, key: str) -> str:
    """
    Fetch an object from S3 and decode it as UTF-8.

    Args:
        bucket: S3 bucket name
        key: S3 object key

    Returns:
        str: Object content

    Raises:
        ValueError: If the bucket or object does not exist
        ClientError: For any other S3 failure
    """
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read().decode('utf-8')
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise ValueError(f"Object not found in S3: {key}")
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise ValueError(f"S3 bucket not found: {bucket}")
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise
