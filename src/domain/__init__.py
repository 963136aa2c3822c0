"""
Domain layer for mail job business logic.

This layer contains:
- Data models (type-safe structures)
- Classified errors (client vs. server failures)
- Job validation and the processing pipeline
"""
