# ABOUTME: Routes module initialization.
# ABOUTME: Exports all route modules for FastAPI app.

from continued_education.web.routes import admin, api, subscribe

__all__ = ["admin", "api", "subscribe"]
