"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models: record snapshots read by the matching engine
- Schemas: API contract (what client sends/receives)

All schemas live in researchhub.schemas.schemas.
"""
