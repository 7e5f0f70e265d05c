"""
Shared numeric utilities for the dashboard pipeline.

Modules
-------
validation
    Float validation and coercion of loosely-typed values
expression
    Restricted arithmetic/comparison expression parser and evaluator
aggregation
    Aggregation policies (AVG, SUM, MAX, MIN, COUNT, LAST) and the trailing
    moving average
formatting
    Display formatting of numeric values (precision, percent, unit suffix)
"""

__all__ = []
