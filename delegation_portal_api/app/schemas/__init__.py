"""
Pydantic schema definitions for API payloads.

Each domain (operations, forms, users, preferences) defines its own
Pydantic models for request and response bodies.  Schemas are
separated from the SQLite rows to decouple API representation from
persistence.
"""
