"""Data models for the employee directory API.

This package contains Pydantic models for stored documents, request
validation and the results returned by the services.
"""
