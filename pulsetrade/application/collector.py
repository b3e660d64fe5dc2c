from ..infrastructure.cancellation import CancellationToken
from ..infrastructure.logging import get_logger
from ..ports.errors import VenueError
from ..ports.market_data import MarketDataPort
from .price_history import PriceHistoryStore

logger = get_logger(__name__)

DEFAULT_COLLECT_INTERVAL = 5.0


class MarketDataCollector:
    """Periodically samples one symbol's price into the shared history."""

    def __init__(
        self,
        symbol: str,
        market_data: MarketDataPort,
        store: PriceHistoryStore,
        interval: float = DEFAULT_COLLECT_INTERVAL,
    ) -> None:
        self.symbol = symbol
        self.market_data = market_data
        self.store = store
        self.interval = interval

    async def collect_once(self) -> bool:
        """Fetch and record one price point; return False when the fetch failed.

        Never raises: any failure only skips this cycle.
        """

        try:
            point = await self.market_data.get_price(self.symbol)
        except VenueError as exc:
            logger.warning("price_fetch_failed", symbol=self.symbol, error=str(exc))
            return False
        except Exception as exc:
            logger.exception("price_fetch_failed", symbol=self.symbol, error=str(exc))
            return False
        await self.store.append(point)
        logger.info("price_recorded", symbol=self.symbol, price=point.price, volume=point.volume)
        return True

    async def run(self, token: CancellationToken) -> None:
        logger.info("collector_started", symbol=self.symbol, interval=self.interval)
        while not token.cancelled:
            await self.collect_once()
            await token.sleep(self.interval)
        logger.info("collector_stopped", symbol=self.symbol)
