"""Shared utilities: subprocess execution, HTTP pooling and logging setup."""
