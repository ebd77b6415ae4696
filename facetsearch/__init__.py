"""Faceted product search.

Turns the facet selections of a catalog page (categories, features,
attributes, stock, condition, manufacturer, weight and price) into
queries over a denormalized catalog index and returns paged results.
"""

__version__ = "0.1.0"
