"""Message resource rules: ownership policy, serialization and the handler.

Nothing in this package knows about HTTP. Routes in ``src.api`` translate
requests into handler calls and the handler raises ``PostboxError``
subclasses that the API boundary turns into responses.
"""
