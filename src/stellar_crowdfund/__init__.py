"""Client for the Soroban crowdfund contract."""

__version__ = "0.1.0"
