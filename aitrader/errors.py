class TradingBotError(RuntimeError):
    pass


# --- feature pipeline ---
class FeatureError(TradingBotError):
    pass


class InsufficientDataError(FeatureError):
    pass


class DataQualityError(FeatureError):
    """A feature denominator was exactly zero."""

    def __init__(self, feature: str, detail: str = "zero denominator"):
        self.feature = feature
        super().__init__(f"{feature}: {detail}")


# --- bridge ---
class ConnectionFailure(TradingBotError):
    pass


class AuthError(ConnectionFailure):
    pass


class NotConnectedError(ConnectionFailure):
    def __init__(self, msg: str = "Not connected to market"):
        super().__init__(msg)


class PositionNotFoundError(TradingBotError):
    def __init__(self, ticket: int):
        self.ticket = ticket
        super().__init__(f"Position {ticket} not found")
