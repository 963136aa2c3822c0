"""
Service functions used by the mail job pipeline.

This package contains template loading and rendering, S3 access, the SMTP
transport and the dispatch adapter that chooses between transports.
"""

__all__ = ['dispatch', 'html_tree', 's3', 'smtp', 'templates']
