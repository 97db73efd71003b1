"""Core package for shared application functionality.

- **config**: Centralized configuration management with environment support
- **context**: Request context and correlation ID management
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Loguru setup and standard logging interception
- **observability**: Distributed tracing with OpenTelemetry
- **security**: Access token issuing and verification
- **types**: Type aliases for dynamic data
"""
