"""
Pydantic schemas for Toggl payload validation.

Provides data models for the Toggl REST API resources and for the
detailed reports endpoint.
"""
