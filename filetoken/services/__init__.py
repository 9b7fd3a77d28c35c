"""Token issuance, path resolution and file serving."""
