"""
Enumerations for definject.

This module defines the node categories produced by the classifier and
consumed by the tree walker.
"""

from enum import Enum


class NodeCategory(str, Enum):
  """
  Shape label assigned to a single syntax node before it is rewritten.

  The walker routes each category to exactly one handler.
  """

  EXCLUSION_PASS = "exclusion_pass"  # call into an excluded module
  INJECTABLE_CALL = "injectable_call"  # module.function(...) routed through the dispatcher
  MACRO_ONLY_CALL = "macro_only_call"  # resolved at definition time, never dispatched
  OPAQUE = "opaque"  # function reference or attribute read
  LOCAL_IMPORT = "local_import"  # import confined to a scoped block
  TOP_LEVEL_IMPORT = "top_level_import"  # import statement in the function body
  OPERATOR_CHAIN = "operator_chain"
  TRY_BLOCK = "try_block"
  CASE_BLOCK = "case_block"
  COMPOUND = "compound"  # generic recurse over children
