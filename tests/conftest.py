"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from unittest.mock import Mock

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

TEST_TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), 'templates')

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')
os.environ.setdefault('MAIL_HOST', 'smtp.example.com')
os.environ.setdefault('TEMPLATES_DIR', TEST_TEMPLATES_DIR)


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    # Environment variables are already set above
    yield


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:freeway-mailer-test"
    context.function_name = "freeway-mailer-test"
    return context


@pytest.fixture
def templates_dir():
    """Directory with the test templates (label.html, welcome.html)."""
    return TEST_TEMPLATES_DIR


@pytest.fixture
def text_job():
    """Valid job with a plain-text body."""
    return {
        'initiator': 'test-suite',
        'mail': {
            'from': {'name': 'Freeway', 'address': 'noreply@example.com'},
            'to': 'jane@example.com',
            'subject': 'Hello',
            'text': 'Plain text body'
        }
    }
