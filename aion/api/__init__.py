"""
API package - FastAPI routes and schemas.
"""

from aion.api.routes import integrations, runs, webhooks, workflows

__all__ = ["integrations", "runs", "webhooks", "workflows"]
