"""
city_info.api.__main__

Entrypoint for running the FastAPI application via `python -m city_info.api`.

Responsibilities:
- Load settings.
- Create the app (boot aborts on configuration errors).
- Start uvicorn with proxy headers honoured for the configured upstreams.
"""

from __future__ import annotations

import uvicorn

from city_info.api.app import create_app
from city_info.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        proxy_headers=False,  # handled by the app's own ProxyHeadersMiddleware
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# For production, this is commonly invoked behind a process manager (systemd/k8s)
# and fronted by an ingress/load balancer.
