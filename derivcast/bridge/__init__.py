"""Bridges to external services: credential signing.

Each bridge hides a third-party library behind a small interface that
derivcast's core depends on.
"""
