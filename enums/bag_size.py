from enum import Enum


class BagSize(int, Enum):
    """
    Fixed bag sizes a product can be bought in (kg per bag).

    Only these four sizes exist. Anything else is a usage error and is
    rejected by from_value() instead of being rounded to a nearby size.
    """
    ONE_KG = 1
    FIVE_KG = 5
    TEN_KG = 10
    TWENTY_FIVE_KG = 25

    @classmethod
    def from_value(cls, value) -> 'BagSize':
        """
        Convert a raw value to BagSize.

        Args:
            value: BagSize member or int kg value

        Returns:
            BagSize enum member

        Raises:
            InvalidBagSizeException: If value is not one of 1, 5, 10, 25

        Examples:
            >>> BagSize.from_value(5)
            <BagSize.FIVE_KG: 5>
            >>> BagSize.from_value(7)
            Traceback (most recent call last):
            ...
            exceptions.cart.InvalidBagSizeException: Invalid bag size 7 ...
        """
        from exceptions.cart import InvalidBagSizeException

        if isinstance(value, cls):
            return value

        # bool is an int subclass, True would silently map to 1kg
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidBagSizeException(value)

        for size in cls:
            if size.value == value:
                return size

        raise InvalidBagSizeException(value)

    @property
    def field_name(self) -> str:
        """Name of the matching BagCounts field (e.g. 'kg5')."""
        return f"kg{self.value}"
