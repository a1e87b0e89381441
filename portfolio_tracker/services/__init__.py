# portfolio_tracker/services/__init__.py
"""
Service layer for the portfolio tracker.

Subpackages:
- analytics: returns, lookback resolution, dashboard series, histories
- rebalancing: target-allocation adjustments and move suggestions
- exchange_rates: rate table fetching and attachment to snapshots

Top-level modules:
- currency: currency conversion engine
- carry_forward: composite snapshot valuation
- platforms: platform derivation and platform value views
- repository: SQLAlchemy-backed storage
"""
