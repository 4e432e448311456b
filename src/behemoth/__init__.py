"""
Behemoth - synthetic channel-matrix load generator.

This package fabricates a matrix of measurement channels and streams
randomized values for them at a paced rate to an OTLP ingestion endpoint.
"""

__version__ = "1.0.0"
