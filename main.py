"""
Revenue Model Optimizer - Main Entry Point

Stateless analytics backend over the Shopify Admin REST API: product,
order and customer rollups, stale-inventory detection, pricing suggestions
and LTV/CAC analysis. Credentials travel with each request.
"""

import sys

import uvicorn

from revenue_optimizer.api.app import create_app
from revenue_optimizer.config.settings import settings
from revenue_optimizer.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Entry point."""
    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.log_file or None,
    )
    logger.info("Logging configured", level=settings.logging.level)

    app = create_app(settings)

    host, port = settings.server.host, settings.server.port
    print(f"\n🚀 Revenue Model Optimizer API running on port {port}")
    print(f"📊 Environment: {settings.server.environment}")
    print(f"🌐 API Base URL: http://localhost:{port}{settings.server.api_prefix}\n")

    try:
        uvicorn.run(app, host=host, port=port, log_level=settings.logging.level.lower())
    except KeyboardInterrupt:
        print("\nShutting down...")
    except Exception as e:
        logger.error("Fatal error", error=str(e))
        print(f"\n❌ Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
