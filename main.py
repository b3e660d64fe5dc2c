import asyncio
import sys

from pulsetrade import config
from pulsetrade.adapters.venue.binance import BinanceVenue
from pulsetrade.application.orchestrator import TradingOrchestrator
from pulsetrade.infrastructure.logging import configure_logging, get_logger
from pulsetrade.ports.errors import VenueError

logger = get_logger(__name__)

CONNECTIVITY_CHECK_SYMBOL = "BTCUSDT"
SHUTDOWN_GRACE_SECONDS = 15.0


async def trade(settings: config.Settings, components: dict) -> int:
    orchestrator: TradingOrchestrator = components["orchestrator"]

    try:
        point = await components["market_data"].get_price(CONNECTIVITY_CHECK_SYMBOL)
    except VenueError as exc:
        logger.error("venue_connection_failed", error=str(exc))
        return 1
    logger.info("venue_connection_ok", symbol=point.symbol, price=point.price)

    symbols = list(settings.trading.symbols)
    bot_task = asyncio.create_task(orchestrator.start(symbols))

    await asyncio.sleep(settings.trading.run_seconds)

    logger.info("bot_shutting_down")
    orchestrator.stop()
    try:
        await asyncio.wait_for(bot_task, timeout=SHUTDOWN_GRACE_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("bot_forced_stop", grace_seconds=SHUTDOWN_GRACE_SECONDS)

    positions = await components["risk_gate"].positions()
    pending = await components["executor"].pending_orders()
    logger.info(
        "bot_stopped",
        positions={p.symbol: p.quantity for p in positions},
        pending_orders=len(pending),
    )
    return 0


async def run() -> int:
    try:
        settings = config.load_settings()
    except config.ConfigurationError as exc:
        logger.error("configuration_invalid", error=str(exc))
        return 1

    configure_logging(settings.logging.level, settings.logging.json_output)
    logger.info("bot_starting", mode="simulation" if settings.venue.simulation else "live")

    components = config.build_components(settings)
    venue: BinanceVenue = components["venue"]
    try:
        return await trade(settings, components)
    finally:
        await venue.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(run()))
