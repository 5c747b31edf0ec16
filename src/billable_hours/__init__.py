"""Billable Hours - time tracking and invoice estimates against a monthly target."""

__version__ = "0.1.0"
