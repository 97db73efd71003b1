"""HTTP API layer built on FastAPI.

- **main**: application factory, lifespan and health endpoints
- **routes**: the ``/messages`` resource
- **dependencies**: bearer authentication and handler wiring
- **middleware**: security headers, correlation ids, access logs, error
  rendering
- **schemas**: request bodies and response envelopes
"""
