"""Pydantic schemas for engine results and API payloads."""
