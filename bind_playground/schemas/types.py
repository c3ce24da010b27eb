"""Detection of composite BIND data types that get first-class treatment."""

from __future__ import annotations

from enum import Enum

from bind_playground.schemas.resolver import ref_name


class SpecialType(str, Enum):
    CODING = "Coding"
    CODEABLE_CONCEPT = "CodeableConcept"
    REFERENCE = "Reference"
    MONEY = "Money"
    MONEY_WITH_CONVERSION = "MoneyWithConversion"
    MULTI_CURRENCY_MONEY = "MultiCurrencyMoney"
    PERIOD = "Period"
    DATE_TIME_PERIOD = "DateTimePeriod"
    # Reserved: recognised, but rendered as generic objects for now
    HUMAN_NAME = "HumanName"
    ADDRESS = "Address"
    CONTACT_POINT = "ContactPoint"
    ATTACHMENT = "Attachment"
    GEO_POINT = "GeoPoint"
    IDENTIFIER = "Identifier"
    QUANTITY = "Quantity"

    @property
    def is_money(self) -> bool:
        return self in _MONEY_TYPES

    @property
    def is_period(self) -> bool:
        return self in _PERIOD_TYPES

    @property
    def is_coded(self) -> bool:
        return self in (SpecialType.CODING, SpecialType.CODEABLE_CONCEPT)

    @property
    def family(self) -> str | None:
        """Widget family shared by interchangeable variants, e.g. every money type."""
        if self.is_money:
            return "money"
        if self.is_period:
            return "period"
        if self.is_coded:
            return "coded"
        return None


_MONEY_TYPES = frozenset(
    {
        SpecialType.MONEY,
        SpecialType.MONEY_WITH_CONVERSION,
        SpecialType.MULTI_CURRENCY_MONEY,
    }
)
_PERIOD_TYPES = frozenset({SpecialType.PERIOD, SpecialType.DATE_TIME_PERIOD})

_BY_NAME = {member.value: member for member in SpecialType}


def is_special_type(name: str) -> bool:
    return name in _BY_NAME


def get_special_type(name: str) -> SpecialType | None:
    return _BY_NAME.get(name)


def detect_special_type(ref: str) -> SpecialType | None:
    """Classify a `$ref` string as a special composite type, or None."""
    name = ref_name(ref)
    if name is None:
        return None
    return get_special_type(name)
