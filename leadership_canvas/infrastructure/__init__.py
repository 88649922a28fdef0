"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- database: Relational persistence (SQLAlchemy)
- auth: Session token decoding (PyJWT)
- webhook: Outbound nudge delivery (httpx)

These wrappers translate between external formats and our domain models.
"""
