"""Postbox - a REST API for messages owned by users.

Layers:
- **api**: FastAPI routes, middleware and response envelopes
- **domain**: ownership policy, serialization and the message handler
- **infrastructure**: SQLAlchemy models, sessions and repositories
- **core**: configuration, logging, tracing, security and exceptions
"""
