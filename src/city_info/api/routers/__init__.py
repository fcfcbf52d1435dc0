"""
city_info.api.routers

Router modules for the City Info API.

Responsibilities:
- Versioned resource routers (cities, points of interest).
- Unversioned infrastructure routers (health, authentication, documentation).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Versioned routers declare their versions and policy as router-level dependencies so
# that version resolution and authorization run before any handler parameter.
