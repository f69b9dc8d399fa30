"""
Core engine: coordinate parsing, measurement, shape lifecycle and search.
"""
