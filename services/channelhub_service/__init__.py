"""Channelhub HTTP service."""
