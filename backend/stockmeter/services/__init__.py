"""Services Layer — provider failover, cache-through market data, valuation, currency.

Invariants:
    - Services depend on protocols (FinancialDataProvider, JSONCache), not concrete clients
    - Services raise StockmeterError subclasses; routes never translate errors
"""
