"""Common utilities shared by the engine and the command line.

Includes:
- ``config``: immutable run configuration and environment-driven settings.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus collectors for sends and sessions.
- ``errors``: exception hierarchy for configuration and session failures.
- ``payload``: the immutable message buffer shared by every session.

Import pattern:
- from pacedload.common.config import LoadConfig
- from pacedload.common.logging import configure_logging
"""
