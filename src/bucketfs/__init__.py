"""bucketfs - bucket/object storage mapped onto a local filesystem."""

__version__ = "0.1.0"
