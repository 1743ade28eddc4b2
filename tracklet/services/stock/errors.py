# services/stock/errors.py


class StockError(Exception):
    """Base class for stock operation failures reported to the caller."""

    code = "STOCK_ERROR"
    status_code = "BAD_REQUEST"

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class InvalidAmountError(StockError):
    """Amount must be greater than zero."""

    code = "INVALID_AMOUNT"


class TankNotFoundError(StockError):
    """Tank not found."""

    code = "TANK_NOT_FOUND"
    status_code = "NOT_FOUND"


class InsufficientAvailableError(StockError):
    """Not enough available gas."""

    code = "INSUFFICIENT_AVAILABLE"


class InsufficientFrozenError(StockError):
    """Not enough frozen gas."""

    code = "INSUFFICIENT_FROZEN"


class CapacityExceededError(StockError):
    """Exceeds tank capacity."""

    code = "CAPACITY_EXCEEDED"


class InsufficientStockError(StockError):
    """Not enough stock available."""

    code = "INSUFFICIENT_STOCK"
    status_code = "CONFLICT"

    def __init__(self, shortfall, requested=None, message=None):
        super().__init__(message)
        self.shortfall = shortfall
        self.requested = requested

    def to_dict(self):
        payload = super().to_dict()
        payload["shortfall"] = str(self.shortfall)
        if self.requested is not None:
            payload["requested"] = str(self.requested)
        return payload


class ConcurrentUpdateError(StockError):
    """Tank was modified concurrently, retry the operation."""

    code = "CONCURRENT_UPDATE"
    status_code = "CONFLICT"
