"""SymbolSweep: monitor and clean the coresymbolicationd cache."""

__version__ = "0.3.0"
