"""
Core business logic for the leadership canvas.

This module is framework-agnostic - it doesn't import FastAPI, SQLAlchemy,
or any infrastructure concerns. Authorization, validation and the uniform
result shape live here so they can be tested without a database or server.
"""
