"""
city_info.services

Service package.

Responsibilities:
- Outbound side effects that handlers trigger (notification mail).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Implementations are chosen once at start-up from the deployment environment.
