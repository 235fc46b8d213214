"""
Core domain: enums, models, exceptions and the backtest engine.
"""
