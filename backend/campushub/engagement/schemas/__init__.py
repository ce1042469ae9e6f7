"""Pydantic schemas for the engagement API."""
