"""bucketfs HTTP API.

Binds the storage adapter operations to HTTP routes.
"""
