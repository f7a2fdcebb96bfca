"""Adapters for feeds, downloads and notifications."""
