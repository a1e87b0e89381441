# portfolio_tracker/__init__.py
"""
Portfolio snapshot analytics.

Carry-forward valuation, currency-converted aggregation, growth /
Modified Dietz / TWR / CAGR returns, period lookback and rebalancing for a
portfolio recorded as irregular, manually entered snapshots.
"""

__version__ = "0.1.0"
