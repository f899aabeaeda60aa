"""
Task API - HTTP layer

Structure:
- routes/     : Endpoint handlers (health, tasks, system)
- schemas/    : Pydantic request/response models
- middleware/ : Error handling
"""

from api.main import create_app

__all__ = ["create_app"]
