"""
MEDS Backend — Application Package Initializer
===============================================

What: The clinic management backend: patients, encounters, pharmacy stock,
      the visit queue and questionnaire collections behind one REST API.
Who:  Imported by uvicorn (`meds.main:app`), Alembic, the `meds` CLI and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (collections + actions)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (record engine + hooks)  │  ← Access rules, stock, locks, queue
    ├─────────────────────────────────────┤
    │   Models, Schemas, Registry (Data)  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Every collection goes through the generic record service; per-collection
    business rules live in hook objects registered in `meds.registry`.
"""

__version__ = "1.0.0"
