"""HTTP API for intake sessions, claims and triage."""

from .app import Services, app, build_services, create_app, main

__all__ = ["app", "create_app", "build_services", "Services", "main"]
