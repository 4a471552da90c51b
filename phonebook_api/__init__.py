"""
Top‑level package for the Phonebook API.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
