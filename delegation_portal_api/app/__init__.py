"""
Application package initializer.

The API is split into small pieces: ``core`` holds configuration,
persistence, security and error types, ``schemas`` the request and
response models, ``services`` the business logic and ``api`` the
versioned routers.  Each domain (operations, forms, users,
preferences) exposes a router defined in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
