"""
Node Rendering for Diagnostics.

Converts detached LibCST nodes into source text "in vacuum". Used to quote the
offending construct in error messages and to show before/after views of an
injected function.
"""

from typing import Optional, Tuple

import libcst as cst

# A dummy module used as a context to render detached nodes.
_RENDER_CTX = cst.parse_module("")


def capture_node_source(node: cst.CSTNode, module: Optional[cst.Module] = None) -> str:
  """
  Renders a LibCST node into its Python source code string representation.

  Args:
      node: The CST node to serialise.
      module: Module the node was parsed from. Its indentation and newline
          style are used; a blank module is used when omitted.

  Returns:
      str: The Python code string.
  """
  try:
    return (module or _RENDER_CTX).code_for_node(node)
  except Exception:
    return f"<Unrepresentable Node: {type(node).__name__}>"


def diff_nodes(
  original: cst.CSTNode, modified: cst.CSTNode, module: Optional[cst.Module] = None
) -> Tuple[str, str, bool]:
  """
  Compares two nodes and returns their source strings.

  Args:
      original: The node before injection.
      modified: The node after injection.
      module: Module both nodes belong to.

  Returns:
      tuple: (source_before, source_after, has_changed)
  """
  src_before = capture_node_source(original, module)
  src_after = capture_node_source(modified, module)

  # Formatting-only differences are not reported as changes.
  is_diff = src_before.strip() != src_after.strip()

  return src_before, src_after, is_diff
