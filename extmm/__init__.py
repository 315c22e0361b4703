"""Market-making components: fair price, spread, skew, order-flow signals and risk guards."""

__version__ = "0.1.0"