"""
Mail template loading and rendering.

Templates are HTML files named '{id}.html'. They are loaded from:
1. The local templates/ directory packaged with the Lambda (default)
2. An S3 bucket, when TEMPLATE_BUCKET is configured

Every render lists the source, reads the file and parses it fresh; nothing
is cached between invocations.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from domain.errors import JobError, TemplateNotFoundError
from services import s3 as s3_service
from services.html_tree import apply_values, parse_html

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = '.html'


class TemplateStore:
    """
    Lists and reads template files from a directory or an S3 prefix.

    Args:
        templates_dir: Local directory with template files
        bucket: S3 bucket name; when set, templates_dir is ignored
        key_prefix: Key prefix of the templates inside the bucket
    """

    def __init__(
        self,
        templates_dir: Path,
        bucket: Optional[str] = None,
        key_prefix: str = 'templates/'
    ):
        self.templates_dir = Path(templates_dir)
        self.bucket = bucket
        self.key_prefix = key_prefix

    def list_names(self) -> List[str]:
        """
        List the file names available in the template source.

        Raises:
            OSError: If the local directory cannot be listed
            ClientError: If the S3 listing fails
        """
        if self.bucket:
            return s3_service.list_object_names(self.bucket, self.key_prefix)
        return os.listdir(self.templates_dir)

    def read(self, file_name: str) -> str:
        """
        Read a template file as text.

        Raises:
            OSError: If the local file cannot be read
            ValueError, ClientError: If the S3 object cannot be fetched
        """
        if self.bucket:
            return s3_service.fetch_text(self.bucket, self.key_prefix + file_name)

        with open(self.templates_dir / file_name, 'r', encoding='utf-8') as f:
            return f.read()


def render_template(store: TemplateStore, template_id: str, values: Dict[str, str]) -> str:
    """
    Load a template and insert values into elements with matching ids.

    Example:
        Template file templ.html: <div><p id='label'/></div>
        render_template(store, "templ", {"label": "Hello World!"})
        returns: <div><p id='label'>Hello World!</p></div>

    Args:
        store: Source of template files
        template_id: Template name without the .html suffix
        values: Mapping of element id to replacement text

    Returns:
        str: Rendered HTML

    Raises:
        TemplateNotFoundError: If '{template_id}.html' does not exist (client error)
        JobError: If the template source cannot be listed or read (server error)
    """
    file_name = f"{template_id}{TEMPLATE_SUFFIX}"

    try:
        available = store.list_names()
    except (OSError, ClientError, BotoCoreError) as e:
        raise JobError.server("Reading templates failed.", e)

    if file_name not in available:
        logger.info(f"Template not found: {file_name} (source has {len(available)} file(s))")
        raise TemplateNotFoundError(template_id)

    try:
        source = store.read(file_name)
    except (OSError, UnicodeDecodeError, ValueError, ClientError, BotoCoreError) as e:
        raise JobError.server(f"Reading template '{template_id}' failed.", e)

    root = parse_html(source)
    replaced = apply_values(root, values)

    logger.info(f"Rendered template {file_name}: {replaced} node(s) filled from {len(values)} value(s)")

    return root.to_html()
