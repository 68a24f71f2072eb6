"""Image Dispatch - multi-backend build dispatch for container images.

This package decodes backend-specific artifact configuration, routes builds
to the builder bound to an execution environment, and computes the source
dependencies of each artifact for file watchers.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
