"""
Utility functions for exporting results.

Classes
-------
OutputFormatter
    Save results as JSON, YAML or CSV

Functions
---------
result_to_dict
    Convert a result to plain nested dictionaries
"""

from lognormal_mie.utils.output import OutputFormatter, result_to_dict

__all__ = [
    "OutputFormatter",
    "result_to_dict",
]
