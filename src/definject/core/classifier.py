"""
Node Classifier.

Labels one syntax node by shape so the walker can route it. Classification is
a pure function of the node and the resolution context; it never looks at the
node's parent.

Rules are checked in order:

1.  Import statements are top-level imports (they fail the rewrite).
2.  Blocks emitted by the macro handler are local imports.
3.  Calls resolving to ``module.function``: an excluded module wins over every
    other label, then macro-only targets, then calls with a static arity.
4.  Dotted attribute chains (function references and field reads) are opaque.
5.  Operator chains, try blocks and match blocks get dedicated handlers.
6.  Everything else is a compound node whose children are rewritten.
"""

import libcst as cst

from definject.core.context import ResolutionContext
from definject.core.macros import is_scoped_import_block
from definject.core.scanners import is_dotted_name
from definject.enums import NodeCategory


def classify(node: cst.CSTNode, env: ResolutionContext) -> NodeCategory:
  """
  Labels ``node`` with the category that decides how it is rewritten.

  Args:
      node: Any LibCST node.
      env: Resolution context of the function being rewritten.

  Returns:
      NodeCategory: The node's category.
  """
  if isinstance(node, (cst.Import, cst.ImportFrom)):
    return NodeCategory.TOP_LEVEL_IMPORT

  if isinstance(node, cst.Call):
    if is_scoped_import_block(node):
      return NodeCategory.LOCAL_IMPORT
    return _classify_call(node, env)

  if isinstance(node, cst.Attribute):
    return NodeCategory.OPAQUE if is_dotted_name(node) else NodeCategory.COMPOUND

  if isinstance(node, (cst.BinaryOperation, cst.BooleanOperation)):
    return NodeCategory.OPERATOR_CHAIN

  if isinstance(node, (cst.Try, cst.TryStar)):
    return NodeCategory.TRY_BLOCK

  if isinstance(node, cst.Match):
    return NodeCategory.CASE_BLOCK

  return NodeCategory.COMPOUND


def _classify_call(node: cst.Call, env: ResolutionContext) -> NodeCategory:
  qualified = env.qualify(node)
  if qualified is None:
    return NodeCategory.COMPOUND

  if env.is_excluded(qualified.module):
    return NodeCategory.EXCLUSION_PASS

  if env.is_macro(qualified):
    return NodeCategory.MACRO_ONLY_CALL

  # `*args` / `**kwargs` hide the arity until run time.
  if any(arg.star for arg in node.args):
    return NodeCategory.COMPOUND

  return NodeCategory.INJECTABLE_CALL
