"""zenbill: invoice, tax and recurring billing calculations."""

__version__ = "0.3.0"
