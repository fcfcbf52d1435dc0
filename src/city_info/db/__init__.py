"""
city_info.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM entities, engine/session setup, seed data and the city-info repository.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Request handlers only see the `CityInfoRepository` protocol; the SQLAlchemy
# implementation is swappable without touching the API layer.
