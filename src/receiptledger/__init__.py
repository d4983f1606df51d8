"""Receipt Ledger: record receipt images into a CSV household ledger."""

__version__ = "0.1.0"
