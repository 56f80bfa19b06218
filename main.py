import asyncio
import os
import sys

from aitrader.bot import AITradingBot
from aitrader.config import BotConfig, Credentials, SimulatorConfig
from aitrader.errors import ConnectionFailure
from aitrader.market.simulator import MarketSimulator
from aitrader.utils.logger import log


def load_config() -> tuple[BotConfig, SimulatorConfig, Credentials]:
    # --- Load config from env or defaults ---
    seed = os.environ.get("AT_SEED", "").strip()
    bot_cfg = BotConfig(
        symbol=os.environ.get("AT_SYMBOL", "EURUSD"),
        max_positions=int(os.environ.get("AT_MAX_POSITIONS", "3")),
        risk_per_trade=float(os.environ.get("AT_RISK_PER_TRADE", "0.02")),
        min_confidence=float(os.environ.get("AT_MIN_CONF", "60")),
        analysis_interval_ms=int(os.environ.get("AT_INTERVAL_MS", "5000")),
        db_path=os.environ.get("AT_DB") or None,
        brain_path=os.environ.get("AT_BRAIN") or None,
    )
    sim_cfg = SimulatorConfig(
        balance=float(os.environ.get("AT_BALANCE", "10000")),
        leverage=int(os.environ.get("AT_LEVERAGE", "100")),
        seed=int(seed) if seed else None,
    )
    creds = Credentials(
        account_number=os.environ.get("AT_ACCOUNT", ""),
        password=os.environ.get("AT_PASSWORD", ""),
        server=os.environ.get("AT_SERVER", ""),
    )
    return bot_cfg, sim_cfg, creds


async def run(bot: AITradingBot, creds: Credentials):
    bot.events.on_trade(lambda t: log.info("📒 %s #%d %s", t.action, t.id, t.reasoning))
    try:
        await bot.connect(creds)
        await bot.start()
        await bot.wait_stopped()
    finally:
        bot.stop()
        if bot.market.is_connected():
            await bot.close_all_positions()
            info = await bot.get_account_info()
            log.info("Final balance: $%.2f  |  %s", info.balance, bot.perf.summary())
        bot.disconnect()


def main():
    bot_cfg, sim_cfg, creds = load_config()

    if not (creds.account_number and creds.password and creds.server):
        print("=" * 60)
        print("  ERROR: No account credentials provided!")
        print()
        print("  Set AT_ACCOUNT, AT_PASSWORD and AT_SERVER, e.g.")
        print("    export AT_ACCOUNT=12345 AT_PASSWORD=demo AT_SERVER=Demo-Server")
        print("=" * 60)
        sys.exit(1)

    bot = AITradingBot(bot_cfg, market=MarketSimulator(sim_cfg))
    try:
        asyncio.run(run(bot, creds))
    except KeyboardInterrupt:
        print("\nCTRL+C detected, stopped.")
    except ConnectionFailure as e:
        print(f"Connection failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
