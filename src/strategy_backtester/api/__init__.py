"""
HTTP API for submitting and polling backtests.
"""
