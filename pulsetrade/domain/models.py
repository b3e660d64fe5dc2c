from dataclasses import dataclass
from typing import Literal, Optional, Tuple


OrderSide = Literal["BUY", "SELL"]
OrderKind = Literal["MARKET", "LIMIT"]

BookLevel = Tuple[float, float]


@dataclass(frozen=True)
class PricePoint:
    """Latest traded price and volume sampled for a single symbol."""

    symbol: str
    price: float
    timestamp: int
    volume: float


@dataclass(frozen=True)
class OrderBookSnapshot:
    """Point-in-time order book; replaced wholesale on every fetch."""

    symbol: str
    bids: Tuple[BookLevel, ...]
    asks: Tuple[BookLevel, ...]
    timestamp: int

    @property
    def best_bid(self) -> Optional[float]:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> Optional[float]:
        return self.asks[0][0] if self.asks else None


@dataclass(frozen=True)
class TradingSignal:
    """Recommendation emitted by a strategy and consumed immediately."""

    symbol: str
    side: OrderSide
    confidence: float
    target_price: float
    quantity: float
    strategy: str = ""


@dataclass(frozen=True)
class Order:
    """Order to be submitted to the venue. The id is the only removal key."""

    id: str
    symbol: str
    side: OrderSide
    kind: OrderKind
    quantity: float
    price: Optional[float]
    created_at: int

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.side == "BUY" else -self.quantity


@dataclass
class Position:
    """Net holding and cost basis for a symbol."""

    symbol: str
    quantity: float = 0.0
    average_price: float = 0.0
    unrealized_pnl: float = 0.0

    def apply_fill(self, signed_quantity: float, price: float) -> None:
        """Apply a fill; positive quantities buy, negative quantities sell.

        The average price is left untouched when the position returns to flat.
        """
        total_cost = self.quantity * self.average_price + signed_quantity * price
        self.quantity += signed_quantity
        if self.quantity != 0:
            self.average_price = total_cost / self.quantity


@dataclass(frozen=True)
class RiskLimits:
    max_position_size: float = 1000.0
    max_loss_per_trade: float = 100.0
    max_daily_loss: float = 500.0
    stop_loss_pct: float = 0.02
    take_profit_pct: float = 0.04
