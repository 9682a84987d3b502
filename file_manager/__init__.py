"""File Manager API: upload, list, download and delete files in an S3 bucket."""

__version__ = "1.0.0"
