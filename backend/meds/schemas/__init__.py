"""MEDS Backend — Pydantic request/response schemas, one module per collection group."""
