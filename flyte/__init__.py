"""Configuration, auth policies, audit queries, a datastore and an HTTP client for a workflow automation API."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "collection_utils",
    "auth_policy",
    "web",
    "audit_model",
    "audit_repo",
    "audit_api",
    "datastore",
    "datastore_api",
    "http_client",
]