"""Route planning and liquidity aggregation core."""

__version__ = "0.1.0"
