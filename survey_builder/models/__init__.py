"""Pydantic models for stored records and request payloads."""
