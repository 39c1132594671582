"""Paced concurrent TCP load generator.

Subpackages:
- ``pacedload.common``: configuration, logging, metrics, errors and payloads.
- ``pacedload.engine``: capacity guard, rate ticker, paced sender, supervisor.
- ``pacedload.performance``: run statistics and process resource sampling.

Usage:
- Run ``pacedload --request-count 100 --rate 10`` against a listener on
  ``localhost:8006`` (``pacedload-sink`` provides one for local runs).
"""

__version__ = "0.1.0"
