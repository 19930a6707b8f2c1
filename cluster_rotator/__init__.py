"""Rolling replacement of cluster nodes behind health gates."""

__version__ = "0.1.0"
