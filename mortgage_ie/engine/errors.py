"""Configuration errors raised before a simulation produces any rows."""


class ConfigurationError(ValueError):
    """Base class for inputs that make a run impossible."""


class InvalidLoanError(ConfigurationError):
    """Mortgage amount or term is not positive, or the term is too long."""


class InvalidRateRecordError(ConfigurationError):
    """A rate record is missing its numeric rate."""


class UnresolvedRateError(ConfigurationError):
    """A rate period references a rate that is not in the catalogue."""

    def __init__(self, period_id: str, rate_id: str, lender_id: str | None = None):
        self.period_id = period_id
        self.rate_id = rate_id
        self.lender_id = lender_id
        where = f" for lender {lender_id}" if lender_id else ""
        super().__init__(f"Rate period {period_id}: rate {rate_id}{where} not found")


class InvalidRatePeriodStackError(ConfigurationError):
    """Negative durations, or an open-ended period that is not last."""


class DrawdownMismatchError(ConfigurationError):
    """Self-build drawdown stages do not add up to the mortgage amount."""


class UnknownPolicyError(ConfigurationError):
    """A lender points at an overpayment policy that was not supplied."""


class InvalidPolicyError(ConfigurationError):
    """An overpayment policy is missing its allowance value."""


class InvalidOverpaymentError(ConfigurationError):
    """An overpayment config is missing its amount or start month."""
