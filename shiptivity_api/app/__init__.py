"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Persistence and configuration live in ``core``, the lane
logic in ``services`` and the HTTP routes under ``api/<version>/``.
"""

from .main import app  # noqa: F401
