"""
Core app - Shared abstractions and utilities.

This app provides the pieces every other app leans on:
- Error taxonomy and its HTTP rendering (errors)
- Input sanitization for write payloads (sanitize)
- Health check endpoint (views)
"""
