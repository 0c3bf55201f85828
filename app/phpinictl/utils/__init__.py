"""Shared utilities for phpinictl."""
