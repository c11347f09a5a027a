"""Utilities package for the delivery scan tracker: configuration and constants."""
