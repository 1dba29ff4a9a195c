"""Adapters — external integrations for the compliance engine.

Contains:
- repositories.py    — SQLAlchemy repositories (balances, ledger, knowledge, check records)
- gemini_client.py   — Gemini language model client
"""

__all__: list[str] = []
