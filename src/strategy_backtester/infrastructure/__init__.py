"""
Collaborator implementations: market data, storage and authorization.
"""
