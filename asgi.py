"""
asgi.py -- Application assembly for AdminDesk.

The single import target for ASGI servers. api/main.py owns the app and its
routers; this module only exposes it under a stable name.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
