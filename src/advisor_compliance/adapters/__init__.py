"""Adapters: external integrations for the compliance engine.

Contains:
- repositories.py    SQLAlchemy repositories for the compliance store
- insight_client.py  httpx client for the remote insight service
"""

__all__: list[str] = []
