"""
Injection Core.

Rewrites the body of a function so that every qualified call goes through the
runtime dispatcher:

- Classifier: labels each node by shape.
- Walker: recursive driver, first error wins.
- Emitter: builds dispatcher calls.
- Clause canonicalizer: exception-handling blocks.
- Macro handler: calls resolved at definition time.
- Exclusion policy: modules never injected.
"""

from definject.core.classifier import classify
from definject.core.context import ResolutionContext
from definject.core.errors import InjectionError, ModifierError, UnusedDependencyError
from definject.core.exclusion import DEFAULT_EXCLUDED_MODULES, ExclusionPolicy
from definject.core.types import DependencyKey, QualifiedCall, RewriteResult
from definject.core.walker import rewrite

__all__ = [
  "classify",
  "rewrite",
  "ResolutionContext",
  "ExclusionPolicy",
  "DEFAULT_EXCLUDED_MODULES",
  "DependencyKey",
  "QualifiedCall",
  "RewriteResult",
  "ModifierError",
  "InjectionError",
  "UnusedDependencyError",
]
