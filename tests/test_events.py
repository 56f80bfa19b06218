from aitrader.constants import Action, BotStatus
from aitrader.trading.trade import TradeSignal
from aitrader.utils.events import EventBus


def test_delivery_in_emission_order():
    bus = EventBus()
    seen = []
    bus.on_status(seen.append)
    bus.emit_status(BotStatus.CONNECTED)
    bus.emit_status(BotStatus.RUNNING)
    assert seen == [BotStatus.CONNECTED, BotStatus.RUNNING]


def test_channels_are_independent():
    bus = EventBus()
    statuses, signals = [], []
    bus.on_status(statuses.append)
    bus.on_analysis(signals.append)
    bus.emit_analysis(TradeSignal.hold("quiet"))
    assert statuses == []
    assert signals[0].action == Action.HOLD


def test_unsubscribe():
    bus = EventBus()
    seen = []
    unsubscribe = bus.on_status(seen.append)
    bus.emit_status(BotStatus.RUNNING)
    unsubscribe()
    unsubscribe()
    bus.emit_status(BotStatus.PAUSED)
    assert seen == [BotStatus.RUNNING]


def test_failing_handler_does_not_block_others():
    bus = EventBus()
    seen = []

    def broken(_):
        raise ValueError("nope")

    bus.on_status(broken)
    bus.on_status(seen.append)
    bus.emit_status(BotStatus.ERROR)
    assert seen == [BotStatus.ERROR]


def test_late_subscriber_gets_no_replay():
    bus = EventBus()
    bus.emit_status(BotStatus.CONNECTED)
    seen = []
    bus.on_status(seen.append)
    assert seen == []
    bus.emit_status(BotStatus.RUNNING)
    assert seen == [BotStatus.RUNNING]
