"""
Relational persistence.

Responsibilities:
- Own the SQLAlchemy engine and session factory for one application.
- Map tours and tour ratings onto tables.
- Hand a per-request session to the HTTP layer.
"""
