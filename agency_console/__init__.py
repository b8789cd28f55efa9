"""Agency operations console: monthly payout computation service."""

__version__ = "1.0.0"
