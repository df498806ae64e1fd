"""bucketfs API middleware."""
