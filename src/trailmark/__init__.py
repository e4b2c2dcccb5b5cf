"""Map-based running and cycling session log.

Record sessions by picking a location, filling a short form, and see them as
map markers and list entries. Sessions persist in a local key-value store
between runs.
"""

__version__ = "0.1.0"

__author__ = "trailmark contributors"
__license__ = "Apache-2.0"

__all__ = ["__version__"]
