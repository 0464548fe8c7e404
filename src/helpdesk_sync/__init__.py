"""Ticket lifecycle and polling sync engine for the helpdesk client."""

__version__ = "0.1.0"
