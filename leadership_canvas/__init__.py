"""
Leadership Canvas - a coaching-relationship service.

Clients keep a leadership canvas (purpose, up to three development themes,
hypotheses to try each week, a progress log). Coaches see every client and
send short nudges.

This package contains the complete application:
- core: Framework-agnostic business logic (authorization-gated mutations)
- infrastructure: Database, session tokens, outbound webhook
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
