"""Middleware and exception handlers shared by all endpoints.

Registration order in ``create_app`` makes security headers the outermost
layer, then the correlation id, then request logging.
"""
