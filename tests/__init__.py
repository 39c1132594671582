"""Tests for the paced load generator.

Unit tests cover configuration, payloads, the ticker and the capacity guard
with injected clocks; sender, supervisor and CLI tests run against loopback
listeners started by the fixtures in ``conftest.py``.
"""
