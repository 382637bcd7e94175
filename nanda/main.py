"""NANDA agent entry point.

Settings -> logging -> NANDA (bridge, REST API, registry) -> run until
SIGINT/SIGTERM -> graceful stop.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from nanda.agent import NANDA
from nanda.config import Settings

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> None:
    """Start an agent and keep it running until the process is signalled."""
    agent = NANDA(settings)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # Windows event loops
            pass

    await agent.start()
    status = agent.get_status()
    logger.info("Agent bridge: %s", status.endpoints.agent)
    logger.info("API server: %s", status.endpoints.api)
    logger.info("Health check: %s", status.endpoints.health)
    logger.info("Active improver: %s", agent.improver.get_active())

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down agent...")
        await agent.close()
        logger.info("Agent stopped.")


def main() -> None:
    """Entry point: parse settings, configure logging and run the agent."""
    settings = Settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    logger.info("Starting NANDA agent: %s (domain %s)", settings.agent_id, settings.domain)
    logger.info("Registry: %s", settings.registry_url)
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set")

    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
