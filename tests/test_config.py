"""
Tests for environment configuration.
"""

import pytest
import sys
import os
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from config import MailerConfig, load_config, DEFAULT_TEMPLATES_DIR
from domain.errors import ConfigurationError


class TestLoadConfig:
    """Test load_config defaults and parsing."""

    def test_defaults(self):
        """Test defaults when nothing is set."""
        config = load_config({})

        assert config.debug is False
        assert config.mail_host is None
        assert config.mail_port == 587
        assert config.mail_secure is True
        assert config.mail_user_name is None
        assert config.mail_user_pass is None
        assert config.templates_dir == DEFAULT_TEMPLATES_DIR
        assert config.template_bucket is None
        assert config.environment == 'dev'

    def test_all_values(self):
        config = load_config({
            'DEBUG': 'true',
            'MAIL_HOST': 'smtp.example.com',
            'MAIL_PORT': '465',
            'MAIL_SECURE': 'false',
            'MAIL_USER_NAME': 'mailer',
            'MAIL_USER_PASS': 'secret',
            'MAIL_TIMEOUT': '5',
            'TEMPLATES_DIR': '/opt/templates',
            'TEMPLATE_BUCKET': 'my-templates',
            'TEMPLATE_KEY_PREFIX': 'mail/',
            'ENVIRONMENT': 'prod'
        })

        assert config.debug is True
        assert config.mail_host == 'smtp.example.com'
        assert config.mail_port == 465
        assert config.mail_secure is False
        assert config.mail_user_name == 'mailer'
        assert config.mail_user_pass == 'secret'
        assert config.mail_timeout == 5
        assert config.templates_dir == Path('/opt/templates')
        assert config.template_bucket == 'my-templates'
        assert config.template_key_prefix == 'mail/'
        assert config.environment == 'prod'

    @pytest.mark.parametrize('value,expected', [
        ('1', True), ('TRUE', True), ('yes', True), ('On', True),
        ('0', False), ('false', False), ('No', False), ('off', False), ('', False),
    ])
    def test_debug_boolean_parsing(self, value, expected):
        assert load_config({'DEBUG': value}).debug is expected

    def test_invalid_boolean(self):
        with pytest.raises(ValueError, match="MAIL_SECURE must be a boolean"):
            load_config({'MAIL_SECURE': 'maybe'})

    def test_invalid_port(self):
        with pytest.raises(ValueError, match="MAIL_PORT must be an integer"):
            load_config({'MAIL_PORT': 'smtp'})

    def test_empty_host_is_unset(self):
        assert load_config({'MAIL_HOST': ''}).mail_host is None


class TestMailerConfig:
    """Test derived settings."""

    def test_smtp_settings(self):
        config = MailerConfig(mail_host='smtp.example.com', mail_user_name='u', mail_user_pass='p')

        settings = config.smtp_settings()

        assert settings.host == 'smtp.example.com'
        assert settings.port == 587
        assert settings.secure is True
        assert settings.user == 'u'
        assert settings.password == 'p'

    def test_smtp_settings_without_host(self):
        with pytest.raises(ConfigurationError, match="Mail transport is not configured."):
            MailerConfig().smtp_settings()

    def test_repr_hides_password(self):
        config = MailerConfig(mail_host='smtp.example.com', mail_user_pass='hunter2')

        assert 'hunter2' not in repr(config)
        assert 'hunter2' not in repr(config.smtp_settings())

    def test_template_source(self):
        assert MailerConfig(templates_dir=Path('/t')).template_source == '/t'
        assert MailerConfig(template_bucket='b').template_source == 's3://b/templates/'
