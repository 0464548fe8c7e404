"""Ticket lifecycle and synchronization services."""
