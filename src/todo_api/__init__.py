"""
Todo API package.

FastAPI service over a single `todos` table, plus an httpx client and a small
terminal front-end. The ASGI app lives at `todo_api.main:app`.
"""

__version__ = "0.1.0"
