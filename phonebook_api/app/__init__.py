"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules: ``core`` (configuration, logging, storage, errors),
``models`` (record rules), ``schemas`` (request and response bodies),
``services`` (directory operations) and ``api`` (HTTP routes).
"""

from .main import app  # noqa: F401
