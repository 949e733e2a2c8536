"""Presentation layer -- HTTP API for the enforcement boundary."""
