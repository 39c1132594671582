"""Concurrency and pacing engine.

Modules:
- ``capacity``: rejects client counts that would oversubscribe the host.
- ``ticker``: fixed-rate periodic timer without drift compensation.
- ``sender``: one connection driven by one ticker.
- ``supervisor``: one thread and event loop per sender, joined at the end.
- ``outcome``: session outcomes and the run report.
"""
