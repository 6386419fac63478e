"""Bakery Cost Engine: recipe bill-of-materials costing for small bakeries."""

__version__ = "0.1.0"
