"""
city_info.mapping

Entity-to-representation mapping.

Responsibilities:
- Table-driven mapper (`mapper`).
- The registered TypeMap rows for this service (`profiles`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Mappings are compiled and validated once in `api.app.create_app`.
