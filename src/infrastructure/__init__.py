"""Infrastructure layer: persistence for users and messages.

The domain layer depends on the repositories exposed here and never on
SQLAlchemy sessions directly.
"""
