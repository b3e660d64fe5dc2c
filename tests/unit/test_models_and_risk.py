import pytest

from pulsetrade.domain.models import Order, OrderBookSnapshot, Position, PricePoint
from pulsetrade.domain.risk.kill_switch import KillSwitch, KillSwitchEngaged
from pulsetrade.domain.risk.rules import MaxLossPerTradeRule, MaxPositionRule, RiskViolation
from pulsetrade.domain.strategy.momentum import MomentumStrategy


def _order(side="BUY", quantity=1.0, symbol="BTCUSDT"):
    return Order(
        id="order-1",
        symbol=symbol,
        side=side,
        kind="MARKET",
        quantity=quantity,
        price=None,
        created_at=1,
    )


def _history(prices, volume, symbol="BTCUSDT"):
    return [
        PricePoint(symbol=symbol, price=price, timestamp=idx, volume=volume)
        for idx, price in enumerate(prices, start=1)
    ]


def _book(symbol="BTCUSDT"):
    return OrderBookSnapshot(symbol=symbol, bids=((99.0, 1.0),), asks=((101.0, 1.0),), timestamp=1)


def test_position_apply_fill_buy_then_flat_keeps_average():
    position = Position(symbol="BTCUSDT")
    position.apply_fill(2, 10)
    assert position.quantity == 2
    assert position.average_price == 10

    position.apply_fill(-2, 12)
    assert position.quantity == 0
    assert position.average_price == 10


def test_position_apply_fill_weights_average_price():
    position = Position(symbol="BTCUSDT")
    position.apply_fill(1, 100)
    position.apply_fill(3, 200)
    assert position.quantity == 4
    assert position.average_price == pytest.approx(175.0)


def test_position_short_from_flat():
    position = Position(symbol="BTCUSDT")
    position.apply_fill(-2, 50)
    assert position.quantity == -2
    assert position.average_price == pytest.approx(50.0)


def test_order_signed_quantity():
    assert _order("BUY", 3).signed_quantity == 3
    assert _order("SELL", 3).signed_quantity == -3


def test_orderbook_best_levels():
    book = _book()
    assert book.best_bid == 99.0
    assert book.best_ask == 101.0
    empty = OrderBookSnapshot(symbol="BTCUSDT", bids=(), asks=(), timestamp=1)
    assert empty.best_bid is None
    assert empty.best_ask is None


def test_kill_switch_triggers_on_loss():
    kill_switch = KillSwitch(daily_loss_limit=100)
    with pytest.raises(KillSwitchEngaged):
        kill_switch.check(pnl=-200)
    kill_switch.check(pnl=-100)


def test_kill_switch_manual_halt():
    kill_switch = KillSwitch(daily_loss_limit=100)
    kill_switch.trigger_manual()
    with pytest.raises(KillSwitchEngaged):
        kill_switch.check(pnl=0)
    kill_switch.release_manual()
    kill_switch.check(pnl=0)


def test_max_position_rule_uses_resulting_quantity():
    rule = MaxPositionRule(max_quantity=10)
    position = Position(symbol="BTCUSDT", quantity=9, average_price=100)
    with pytest.raises(RiskViolation):
        rule.evaluate(position, _order("BUY", 2))
    rule.evaluate(position, _order("SELL", 2))


def test_max_position_rule_treats_missing_position_as_flat():
    rule = MaxPositionRule(max_quantity=10)
    rule.evaluate(None, _order("SELL", 10))
    with pytest.raises(RiskViolation):
        rule.evaluate(None, _order("SELL", 11))


def test_max_loss_per_trade_rule():
    rule = MaxLossPerTradeRule(max_loss=100, stop_loss_pct=0.02)
    rule.evaluate(_order(quantity=1), reference_price=4000)
    with pytest.raises(RiskViolation):
        rule.evaluate(_order(quantity=1), reference_price=6000)


def test_momentum_emits_sell_on_drop_with_volume():
    strategy = MomentumStrategy(lookback_period=5, momentum_threshold=0.01)
    history = _history([100, 100, 100, 100, 90], volume=1500)

    signal = strategy.analyze(history, _book())

    assert signal is not None
    assert signal.side == "SELL"
    assert signal.confidence == pytest.approx(0.10)
    assert signal.target_price == 90
    assert signal.quantity == strategy.quantity
    assert signal.strategy == "MomentumStrategy"


def test_momentum_requires_volume_floor():
    strategy = MomentumStrategy(lookback_period=5, momentum_threshold=0.01)
    history = _history([100, 100, 100, 100, 90], volume=500)
    assert strategy.analyze(history, _book()) is None


@pytest.mark.parametrize(
    "prices,expected_side",
    [([100, 101, 102, 103, 110], "BUY"), ([110, 108, 107, 104, 100], "SELL")],
)
def test_momentum_direction(prices, expected_side):
    strategy = MomentumStrategy(lookback_period=5, momentum_threshold=0.01)
    signal = strategy.analyze(_history(prices, volume=2000), _book())
    assert signal is not None
    assert signal.side == expected_side


def test_momentum_only_uses_lookback_window():
    strategy = MomentumStrategy(lookback_period=3, momentum_threshold=0.01)
    # the early crash is outside the window; the last three points are flat
    history = _history([500, 100, 100, 100], volume=5000)
    assert strategy.analyze(history, _book()) is None


def test_momentum_needs_two_points_and_threshold():
    strategy = MomentumStrategy(lookback_period=5, momentum_threshold=0.01)
    assert strategy.analyze(_history([100], volume=5000), _book()) is None
    assert strategy.analyze(_history([100, 100.5], volume=5000), _book()) is None


def test_momentum_confidence_capped_at_one():
    strategy = MomentumStrategy(lookback_period=2, momentum_threshold=0.01)
    signal = strategy.analyze(_history([10, 50], volume=5000), _book())
    assert signal is not None
    assert signal.confidence == 1.0


def test_momentum_rejects_short_lookback():
    with pytest.raises(ValueError):
        MomentumStrategy(lookback_period=1)
