import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import tomllib

from .adapters.venue.binance import LIVE_BASE_URL, TESTNET_BASE_URL, BinanceVenue
from .application.execution import OrderExecutionCoordinator
from .application.orchestrator import TradingOrchestrator
from .application.price_history import PriceHistoryStore
from .application.risk_gate import RiskGate
from .application.strategy_engine import StrategyEngine
from .domain.models import RiskLimits
from .domain.strategy.momentum import MomentumStrategy
from .ports.broker import BrokerPort
from .ports.market_data import MarketDataPort

DEFAULT_SETTINGS_PATH = Path("config/settings.toml")

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass
class VenueSettings:
    api_key: str
    secret_key: str
    base_url: str
    simulation: bool


@dataclass
class RiskSettings:
    max_position_size: float
    max_loss_per_trade: float
    max_daily_loss: float
    stop_loss_pct: float
    take_profit_pct: float

    def to_limits(self) -> RiskLimits:
        return RiskLimits(
            max_position_size=self.max_position_size,
            max_loss_per_trade=self.max_loss_per_trade,
            max_daily_loss=self.max_daily_loss,
            stop_loss_pct=self.stop_loss_pct,
            take_profit_pct=self.take_profit_pct,
        )


@dataclass
class StrategySettings:
    lookback_period: int
    momentum_threshold: float
    quantity: float


@dataclass
class TradingSettings:
    symbols: Tuple[str, ...]
    run_seconds: float
    history_bound: int
    collect_interval: float
    decision_interval: float
    min_history: int


@dataclass
class LoggingSettings:
    level: str
    json_output: bool


@dataclass
class Settings:
    venue: VenueSettings
    risk: RiskSettings
    strategy: StrategySettings
    trading: TradingSettings
    logging: LoggingSettings


def load_settings(settings_path: Optional[Path] = None) -> Settings:
    """Load configuration from environment with optional config file defaults.

    Venue credentials have no default; a missing credential raises
    ConfigurationError so the process refuses to start.
    """

    file_settings = _load_file_settings(settings_path or DEFAULT_SETTINGS_PATH)

    simulation = _as_bool(_config_value("USE_TESTNET", file_settings, "venue", "testnet", "false"))
    default_base_url = TESTNET_BASE_URL if simulation else LIVE_BASE_URL

    try:
        return Settings(
            venue=VenueSettings(
                api_key=_required_value("BINANCE_API_KEY", file_settings, "venue", "api_key"),
                secret_key=_required_value("BINANCE_SECRET_KEY", file_settings, "venue", "secret_key"),
                base_url=_config_value("BINANCE_BASE_URL", file_settings, "venue", "base_url", default_base_url),
                simulation=simulation,
            ),
            risk=RiskSettings(
                max_position_size=float(
                    _config_value("RISK_MAX_POSITION_SIZE", file_settings, "risk", "max_position_size", "1000.0")
                ),
                max_loss_per_trade=float(
                    _config_value("RISK_MAX_LOSS_PER_TRADE", file_settings, "risk", "max_loss_per_trade", "100.0")
                ),
                max_daily_loss=float(
                    _config_value("RISK_MAX_DAILY_LOSS", file_settings, "risk", "max_daily_loss", "500.0")
                ),
                stop_loss_pct=float(
                    _config_value("RISK_STOP_LOSS_PCT", file_settings, "risk", "stop_loss_pct", "0.02")
                ),
                take_profit_pct=float(
                    _config_value("RISK_TAKE_PROFIT_PCT", file_settings, "risk", "take_profit_pct", "0.04")
                ),
            ),
            strategy=StrategySettings(
                lookback_period=int(
                    _config_value("MOMENTUM_LOOKBACK", file_settings, "strategy", "lookback_period", "5")
                ),
                momentum_threshold=float(
                    _config_value("MOMENTUM_THRESHOLD", file_settings, "strategy", "momentum_threshold", "0.001")
                ),
                quantity=float(_config_value("MOMENTUM_QUANTITY", file_settings, "strategy", "quantity", "0.001")),
            ),
            trading=TradingSettings(
                symbols=_as_symbols(
                    _config_value("TRADING_SYMBOLS", file_settings, "trading", "symbols", "BTCUSDT,ETHUSDT")
                ),
                run_seconds=float(_config_value("TRADING_RUN_SECONDS", file_settings, "trading", "run_seconds", "60")),
                history_bound=int(
                    _config_value("TRADING_HISTORY_BOUND", file_settings, "trading", "history_bound", "100")
                ),
                collect_interval=float(
                    _config_value("TRADING_COLLECT_INTERVAL", file_settings, "trading", "collect_interval", "5")
                ),
                decision_interval=float(
                    _config_value("TRADING_DECISION_INTERVAL", file_settings, "trading", "decision_interval", "10")
                ),
                min_history=int(_config_value("TRADING_MIN_HISTORY", file_settings, "trading", "min_history", "3")),
            ),
            logging=LoggingSettings(
                level=_config_value("LOG_LEVEL", file_settings, "logging", "level", "INFO"),
                json_output=_as_bool(_config_value("LOG_JSON", file_settings, "logging", "json", "false")),
            ),
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid configuration value: {exc}") from exc


def _load_file_settings(settings_path: Path) -> Dict[str, Any]:
    if not settings_path.exists():
        return {}

    try:
        with settings_path.open("rb") as settings_file:
            return tomllib.load(settings_file)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Cannot parse {settings_path}: {exc}") from exc


def _config_value(
    env_key: str, settings: Dict[str, Any], section: str, key: str, default: str
) -> str:
    if env_key in os.environ:
        return os.environ[env_key]

    section_data = settings.get(section, {})
    value = section_data.get(key, default)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(item) for item in value)
    return str(value)


def _required_value(env_key: str, settings: Dict[str, Any], section: str, key: str) -> str:
    value = os.environ.get(env_key) or settings.get(section, {}).get(key)
    if not value:
        raise ConfigurationError(f"{env_key} environment variable not set")
    return str(value)


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_VALUES


def _as_symbols(raw: str) -> Tuple[str, ...]:
    symbols = tuple(part.strip().upper() for part in raw.split(",") if part.strip())
    if not symbols:
        raise ConfigurationError("At least one trading symbol is required")
    return symbols


def build_components(settings: Settings) -> dict:
    """Construct all trading components for wiring in main.py."""

    venue = BinanceVenue(
        api_key=settings.venue.api_key,
        secret_key=settings.venue.secret_key,
        base_url=settings.venue.base_url,
        simulation=settings.venue.simulation,
    )
    market_data: MarketDataPort = venue
    broker: BrokerPort = venue
    store = PriceHistoryStore(bound=settings.trading.history_bound)
    strategy_engine = StrategyEngine(
        [
            MomentumStrategy(
                lookback_period=settings.strategy.lookback_period,
                momentum_threshold=settings.strategy.momentum_threshold,
                quantity=settings.strategy.quantity,
            )
        ]
    )
    risk_gate = RiskGate(settings.risk.to_limits())
    executor = OrderExecutionCoordinator(broker=broker)
    orchestrator = TradingOrchestrator(
        market_data=market_data,
        strategy_engine=strategy_engine,
        risk_gate=risk_gate,
        executor=executor,
        store=store,
        collect_interval=settings.trading.collect_interval,
        decision_interval=settings.trading.decision_interval,
        min_history=settings.trading.min_history,
    )
    return {
        "venue": venue,
        "market_data": market_data,
        "broker": broker,
        "store": store,
        "strategy_engine": strategy_engine,
        "risk_gate": risk_gate,
        "executor": executor,
        "orchestrator": orchestrator,
    }
