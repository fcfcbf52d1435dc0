"""
city_info.observability

Observability package.

Responsibilities:
- Environment-aware diagnostics (logging/telemetry sink) assembly.
- Request context propagation for consistent log enrichment.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Sinks are chosen once at start-up; request code only ever sees the Diagnostics handle.
