"""Bulk upload of local files to S3 with bounded concurrency and adaptive retry."""

__version__ = "0.1.0"
