"""
city_info.auth

Authentication/authorization package.

Responsibilities:
- Bearer token validation into a claims-carrying `Principal`.
- Named authorization policies and their evaluation.
- FastAPI auth dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `jwt` and `policies` have no FastAPI imports; only `deps` binds them to the web layer.
