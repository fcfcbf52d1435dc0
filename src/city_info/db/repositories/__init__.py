"""
city_info.db.repositories

Repository package.

Responsibilities:
- Define the narrow persistence contract consumed by request handlers.
- Provide the SQLAlchemy implementation of that contract.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are intentionally thin; mapping and policy live in the pipeline layers.
