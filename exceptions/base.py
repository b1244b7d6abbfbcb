"""
Root of the rice shop exception tree.
"""


class ShopException(Exception):
    """
    Every error the shop core raises on purpose derives from this.

    Callers that only care whether a shop rule was violated catch
    ShopException; everything else (SQLAlchemyError, OSError, ...) is an
    infrastructure failure.

    Attributes:
        message: Text shown in logs and returned to callers
        details: Identifiers and states involved (order_id, code, ...)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if not self.details:
            return f"{self.__class__.__name__}('{self.message}')"
        details_str = ', '.join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.__class__.__name__}('{self.message}', {details_str})"
