"""
city_info.api

API package for the City Info service.

Responsibilities:
- FastAPI app factory, routers and request/response models.
- The per-request pipeline stages (versioning, negotiation, problem responses).
- Per-version API description generation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: pipeline checks + delegation to the repository + mapping.
