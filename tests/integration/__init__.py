"""End-to-end runs of the command line against loopback listeners.

These tests take real wall-clock time because they exercise the pacing.
"""
