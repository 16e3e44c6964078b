"""Error types raised or reported by the exchange planner."""


class ExchangePlannerError(Exception):
    """Base error for exchange planner failures."""


class DataIntegrityError(ExchangePlannerError):
    """Catalog or profile data is inconsistent and the operation cannot proceed."""


class MissingProfileWarning(UserWarning):
    """A bucket had no usable profile and was left out of the plan."""

    def __init__(self, bucket_key: str, reason: str) -> None:
        super().__init__(f"{bucket_key}: {reason}")
        self.bucket_key = bucket_key
        self.reason = reason

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MissingProfileWarning):
            return NotImplemented
        return (self.bucket_key, self.reason) == (other.bucket_key, other.reason)

    def __hash__(self) -> int:
        return hash((self.bucket_key, self.reason))
