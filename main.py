"""
main.py — Single entry point.

Builds the long-lived collaborators once and runs the aiohttp server:

  asyncio event loop
    └── aiohttp web server
          ├── FailoverInvoker  (one Gemini client per configured key)
          └── CatalogCache     (Shopify catalog, fetched on first use)

Refuses to start without at least one Gemini API key.
"""
import asyncio
import logging
import signal
import sys

import config
from catalog.cache import CatalogCache
from catalog.partition import hair_classifier
from catalog.shopify_backend import ShopifyCatalogSource
from providers.base import ConfigurationError
from providers.manager import CredentialPool, FailoverInvoker

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


async def run() -> None:
    # ── Credentials (fatal when missing) ──────────────────────────────────────
    try:
        pool = CredentialPool.from_keys(config.GEMINI_API_KEYS)
    except ConfigurationError as exc:
        logger.critical("CRITICAL ERROR: %s", exc)
        sys.exit(1)

    invoker = FailoverInvoker(pool, attempt_timeout=config.GEMINI_ATTEMPT_TIMEOUT)
    cache = CatalogCache(ShopifyCatalogSource.from_config())
    classifier = hair_classifier()

    from server import build_web_app, start_server
    runner = await start_server(build_web_app(invoker, cache, classifier))

    stop_event = asyncio.Event()

    def _stop(*_):
        logger.info("Shutdown signal received.")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _stop)
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler for all signals
            pass

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down…")
        await runner.cleanup()

    logger.info("Goodbye.")


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
