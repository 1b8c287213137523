"""log2csv: extract named regular-expression captures from log lines into CSV."""

__version__ = "0.1.0"
