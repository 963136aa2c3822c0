"""
Tests for job validation and message composition.
"""

import pytest
from email.utils import parseaddr
from unittest.mock import Mock, patch
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.errors import ErrorKind, JobError, TemplateNotFoundError
from domain.job_validator import JobValidator
from domain.models import BodyKind
from services.templates import TemplateStore


@pytest.fixture
def validator(templates_dir):
    return JobValidator(TemplateStore(templates_dir=templates_dir))


def make_job(**mail):
    base = {
        'from': {'name': 'Freeway', 'address': 'noreply@example.com'},
        'to': 'jane@example.com',
        'subject': 'Hello',
    }
    base.update(mail)
    return {'initiator': 'test-suite', 'mail': {k: v for k, v in base.items() if v is not None}}


def assert_client_error(validator, job, message):
    with pytest.raises(JobError) as exc_info:
        validator.build_message(job)
    assert exc_info.value.kind is ErrorKind.CLIENT
    assert exc_info.value.message == message


class TestRequiredFields:
    """Test fail-fast validation of required fields."""

    @pytest.mark.parametrize('job', [None, [], {}, {'mail': 'not-an-object'}])
    def test_missing_mail(self, validator, job):
        assert_client_error(validator, job, "Field 'mail' not set.")

    def test_missing_from(self, validator):
        assert_client_error(validator, make_job(**{'from': None}, text='x'), "Field 'from' not set.")

    @pytest.mark.parametrize('sender', [{'name': None, 'address': None}, {}])
    def test_from_without_name_and_address(self, validator, sender):
        job = make_job(**{'from': sender}, text='x')

        assert_client_error(validator, job, "Field 'name' and 'address' not set. Specify at least one.")

    def test_from_with_unrelated_keys_only(self, validator):
        job = make_job(**{'from': {'email': 'a@example.com'}}, text='x')

        assert_client_error(validator, job, "Field 'name' and 'address' not set. Specify at least one.")

    def test_missing_to(self, validator):
        assert_client_error(validator, make_job(to=None, text='x'), "Field 'to' not set.")

    def test_empty_to(self, validator):
        assert_client_error(validator, make_job(to='', text='x'), "Field 'to' not set.")

    def test_missing_subject(self, validator):
        assert_client_error(validator, make_job(subject=None, text='x'), "Field 'subject' not set.")

    def test_missing_body(self, validator):
        assert_client_error(validator, make_job(), "Field 'text' nor 'html' nor 'template' set.")

    def test_fields_checked_in_order(self, validator):
        """Test that 'to' is reported before 'subject' and the body."""
        job = {'mail': {'from': {'address': 'a@example.com'}}}

        assert_client_error(validator, job, "Field 'to' not set.")


class TestFromHeader:
    """Test From header composition."""

    def test_name_and_address(self, validator):
        message = validator.build_message(make_job(text='x'))

        assert message.from_header == '"Freeway" <noreply@example.com>'

    @patch('domain.job_validator._local_user', return_value='lambda-user')
    def test_name_falls_back_to_local_user(self, mock_user, validator):
        message = validator.build_message(make_job(**{'from': {'address': 'a@example.com'}}, text='x'))

        assert message.from_header == '"lambda-user" <a@example.com>'

    @patch('domain.job_validator._local_host', return_value='ip-10-0-0-1')
    def test_address_falls_back_to_local_host(self, mock_host, validator):
        message = validator.build_message(make_job(**{'from': {'name': 'Billing'}}, text='x'))

        assert message.from_header == '"Billing" <ip-10-0-0-1>'

    def test_string_from_is_address(self, validator):
        with patch('domain.job_validator._local_user', return_value='svc'):
            message = validator.build_message(make_job(**{'from': 'a@example.com'}, text='x'))

        assert message.from_header == '"svc" <a@example.com>'


class TestBodyResolution:
    """Test body selection: text > html > template."""

    def test_text_body_is_verbatim(self, validator):
        store = Mock(spec=TemplateStore)
        validator = JobValidator(store)

        message = validator.build_message(make_job(text='  Line 1\nLine 2  ', template={'id': 'label'}))

        assert message.body.kind is BodyKind.TEXT
        assert message.body.content == '  Line 1\nLine 2  '
        store.list_names.assert_not_called()
        store.read.assert_not_called()

    def test_html_body(self, validator):
        message = validator.build_message(make_job(html='<p>Hi</p>'))

        assert message.body.kind is BodyKind.HTML
        assert message.body.content == '<p>Hi</p>'

    def test_text_wins_over_html(self, validator):
        message = validator.build_message(make_job(text='plain', html='<p>rich</p>'))

        assert message.body.kind is BodyKind.TEXT

    def test_template_body(self, validator):
        message = validator.build_message(make_job(template={'id': 'label', 'label': 'Hello World!'}))

        assert message.body.kind is BodyKind.HTML
        assert message.body.content == "<div><p id='label'>Hello World!</p></div>"

    def test_template_without_id(self, validator):
        assert_client_error(validator, make_job(template={'label': 'x'}), "No template id specified.")

    def test_unknown_template_propagates(self, validator):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            validator.build_message(make_job(template={'id': 'nope'}))

        assert exc_info.value.message == "Template 'nope' does not exist."
        assert exc_info.value.kind is ErrorKind.CLIENT

    def test_template_server_error_propagates_unchanged(self):
        store = Mock(spec=TemplateStore)
        store.list_names.side_effect = PermissionError("denied")
        validator = JobValidator(store)

        with pytest.raises(JobError) as exc_info:
            validator.build_message(make_job(template={'id': 'label'}))

        assert exc_info.value.kind is ErrorKind.SERVER
        assert isinstance(exc_info.value.cause, PermissionError)


class TestMessageFields:
    """Test the remaining message fields."""

    def test_to_and_subject(self, validator):
        message = validator.build_message(make_job(text='x'))

        assert message.to == 'jane@example.com'
        assert message.subject == 'Hello'

    def test_to_list_is_joined(self, validator):
        message = validator.build_message(make_job(to=['a@example.com', 'b@example.com'], text='x'))

        assert message.to == 'a@example.com, b@example.com'

    def test_line_breaks_in_headers_are_collapsed(self, validator):
        """Test that multi-line header values become single-line values."""
        job = make_job(
            **{'from': {'name': 'Billing\r\nTeam', 'address': 'billing@example.com'}},
            to='jane@example.com\n',
            subject='Hello\nWorld',
            text='Line 1\nLine 2'
        )

        message = validator.build_message(job)

        assert message.subject == 'Hello World'
        assert message.to == 'jane@example.com '
        assert message.from_header == '"Billing Team" <billing@example.com>'
        assert message.body.content == 'Line 1\nLine 2'


class TestFromHeaderQuoting:
    """Test quoting of display names."""

    def test_quotes_in_name_are_escaped(self, validator):
        message = validator.build_message(
            make_job(**{'from': {'name': 'Jane "JJ" Doe', 'address': 'jane@example.com'}}, text='x')
        )

        assert message.from_header == '"Jane \\"JJ\\" Doe" <jane@example.com>'
        assert parseaddr(message.from_header) == ('Jane "JJ" Doe', 'jane@example.com')

    def test_backslash_in_name_is_escaped(self, validator):
        message = validator.build_message(
            make_job(**{'from': {'name': 'DOMAIN\\jane', 'address': 'jane@example.com'}}, text='x')
        )

        assert parseaddr(message.from_header) == ('DOMAIN\\jane', 'jane@example.com')
