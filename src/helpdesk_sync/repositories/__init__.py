"""Thin HTTP repositories for the helpdesk backend services."""
