"""Run the failover proxy with uvicorn.

Configuration comes from EDGE_* environment variables, for example:

    export EDGE_MASTER_TOKEN=s3cret
    export EDGE_PRIMARY_ORIGINS='[{"url": "http://localhost:9001", "weight": 1},
                                  {"url": "http://localhost:9002", "weight": 2}]'
    export EDGE_FALLBACK_ORIGIN=http://localhost:9003
    export EDGE_METRICS_PORT=9100
    python demo_app.py

Then try:

    curl -i http://localhost:8000/anything?x=1
    curl -i -X POST -H "Authorization: s3cret" -d '{"id": 1}' http://localhost:8000/discord/event
    curl -i -X POST -H "Authorization: s3cret" -d '{"id": 1}' http://localhost:8000/discord/event
"""

import os

import uvicorn
from prometheus_client import start_http_server

from failover_proxy.adapters.asgi import create_app
from failover_proxy.config import ProxyConfig
from failover_proxy.observability.logging import configure_logging, get_logger

logger = get_logger("failover_proxy.demo")


def main() -> None:
    config = ProxyConfig.from_env()
    configure_logging(level=config.log_level, json_output=config.json_logs)

    app = create_app(config)

    if config.metrics_port is not None:
        start_http_server(config.metrics_port)
        logger.info("metrics.serving", port=config.metrics_port)

    uvicorn.run(
        app,
        host=os.environ.get("EDGE_HOST", "0.0.0.0"),
        port=int(os.environ.get("EDGE_PORT", "8000")),
        log_level=config.log_level.lower(),
        # Keep uvicorn on the root handler installed by configure_logging
        log_config=None,
    )


if __name__ == "__main__":
    main()
