"""
Adapters for external services.
"""
