"""
Geomark - interactive geometry annotation and measurement for web maps.

This package provides coordinate parsing, geodesic measurement, a draw-shape
lifecycle manager and location search for map front ends.
"""

__version__ = "0.1.0"
