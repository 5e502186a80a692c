"""
Backend package for the keepsake API.

This package provides a FastAPI application over a record store and a photo
bucket, with in-memory stand-ins for both so the service runs locally.
"""
