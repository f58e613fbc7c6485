"""abu: AWS billing utility.

This package hosts the cost-report engine (query fan-out, collection,
aggregation and ranking), the AWS adapters it runs against, and the ``abu``
command-line interface.
"""

from .__version__ import __version__

__all__ = ["__version__"]
