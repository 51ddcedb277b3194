"""Shared helpers: structured logging, JSON, and role normalization."""
