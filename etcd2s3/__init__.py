# etcd2s3/__init__.py
"""etcd snapshot retention and cross-store reconciliation."""

__version__ = "0.1.0"
