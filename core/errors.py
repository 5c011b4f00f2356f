from __future__ import annotations


class AvailabilityError(ValueError):
    """Base class for caller-input errors raised by the availability engine."""


class InvalidTimeError(AvailabilityError):
    pass


class InvalidDateError(AvailabilityError):
    pass


class UnknownTimezoneError(AvailabilityError):
    def __init__(self, zone: str):
        self.zone = zone
        super().__init__(f"unknown timezone identifier: {zone!r}")


class InvalidRuleError(AvailabilityError):
    pass
