"""bucketfs API routes."""
