"""Builder plugins.

This package handles:
- Materializing plugin configuration onto artifacts
- Adapting execution environment properties to backend options
- Resolving artifact dependencies to absolute paths
- Routing builds to the builder bound to an environment
"""

from imagedispatch.plugins.bazel import BazelPlugin
from imagedispatch.plugins.gcb import CloudBuildPlugin

__all__ = ["BazelPlugin", "CloudBuildPlugin"]
