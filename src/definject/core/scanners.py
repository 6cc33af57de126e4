"""
AST Scanners for Name Binding and Dispatch Detection.

This module provides LibCST visitors that analyze a function before or after
injection:

1.  ``BoundNameScanner`` collects every name bound anywhere in a function.
    A module alias that is rebound locally must not be resolved through the
    function's globals.
2.  ``NameUsageScanner`` collects every name read in an expression. The macro
    handler uses it to pick a binding name that shadows nothing.
3.  ``FrameBoundScanner`` detects expressions (``await``, ``yield``, ``:=``)
    that cannot be moved into a nested lambda scope.
4.  ``DependencyKeyScanner`` lists the substitution keys of the dispatcher
    calls present in a rewritten tree.
"""

from typing import List, Set, Union

import libcst as cst

from definject.core.types import DISPATCHER_ALIAS, DependencyKey


def get_full_name(node: Union[cst.Name, cst.Attribute]) -> str:
  """
  Recursively resolves a CST Name or Attribute chain to a dot-separated string.

  Args:
    node: The CST node representing the identifier.

  Returns:
    str: The dotted representation (e.g., "os.path.join").
    Returns an empty string if the node is not a pure Name/Attribute chain.

  Example:
    >>> get_full_name(cst.Attribute(value=cst.Name("os"), attr=cst.Name("path")))
    'os.path'
  """
  if isinstance(node, cst.Name):
    return node.value
  elif isinstance(node, cst.Attribute):
    parent = get_full_name(node.value)
    return f"{parent}.{node.attr.value}" if parent else ""
  return ""


def is_dotted_name(node: cst.CSTNode) -> bool:
  """Returns True for ``a.b.c`` style chains built only from names."""
  return isinstance(node, (cst.Name, cst.Attribute)) and bool(get_full_name(node))


def _target_names(target: cst.CSTNode) -> List[str]:
  """Names bound by an assignment target (tuples and starred unpacking included)."""
  if isinstance(target, cst.Name):
    return [target.value]
  if isinstance(target, (cst.Tuple, cst.List)):
    names: List[str] = []
    for element in target.elements:
      names.extend(_target_names(element.value))
    return names
  if isinstance(target, cst.StarredElement):
    return _target_names(target.value)
  # Attribute and subscript targets do not bind a local name.
  return []


class BoundNameScanner(cst.CSTVisitor):
  """
  Collects the names bound locally in a function definition.

  Nested functions, lambdas and comprehensions are included: the result is a
  conservative superset. Names declared ``global`` are removed.

  Attributes:
    bound (Set[str]): Names bound somewhere in the visited tree.
    declared_global (Set[str]): Names listed in ``global`` statements.
  """

  def __init__(self) -> None:
    self.bound: Set[str] = set()
    self.declared_global: Set[str] = set()

  @property
  def local_names(self) -> Set[str]:
    return self.bound - self.declared_global

  def visit_Param(self, node: cst.Param) -> None:
    self.bound.add(node.name.value)

  def visit_AssignTarget(self, node: cst.AssignTarget) -> None:
    self.bound.update(_target_names(node.target))

  def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
    self.bound.update(_target_names(node.target))

  def visit_AugAssign(self, node: cst.AugAssign) -> None:
    self.bound.update(_target_names(node.target))

  def visit_For(self, node: cst.For) -> None:
    self.bound.update(_target_names(node.target))

  def visit_CompFor(self, node: cst.CompFor) -> None:
    self.bound.update(_target_names(node.target))

  def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
    self.bound.update(_target_names(node.target))

  def visit_AsName(self, node: cst.AsName) -> None:
    # Covers `with ... as x`, `except E as x` and `import m as x`.
    self.bound.update(_target_names(node.name))

  def visit_ImportAlias(self, node: cst.ImportAlias) -> None:
    if node.asname is None:
      self.bound.add(get_full_name(node.name).split(".")[0])

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    self.bound.add(node.name.value)

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    self.bound.add(node.name.value)

  def visit_MatchAs(self, node: cst.MatchAs) -> None:
    if node.name is not None:
      self.bound.add(node.name.value)

  def visit_MatchStar(self, node: cst.MatchStar) -> None:
    if node.name is not None:
      self.bound.add(node.name.value)

  def visit_MatchMapping(self, node: cst.MatchMapping) -> None:
    if node.rest is not None:
      self.bound.add(node.rest.value)

  def visit_Global(self, node: cst.Global) -> None:
    self.declared_global.update(item.name.value for item in node.names)


class NameUsageScanner(cst.CSTVisitor):
  """
  Collects every bare identifier appearing in the visited tree.

  Attribute names (the ``b`` in ``a.b``) and keyword argument names are not
  references and are skipped.
  """

  def __init__(self) -> None:
    self.names: Set[str] = set()

  def visit_Name(self, node: cst.Name) -> None:
    self.names.add(node.value)

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    node.value.visit(self)
    return False

  def visit_Arg(self, node: cst.Arg) -> bool:
    node.value.visit(self)
    return False


class FrameBoundScanner(cst.CSTVisitor):
  """
  Detects expressions whose meaning depends on the enclosing function frame.

  ``await`` and ``yield`` are invalid inside a lambda and a walrus would bind
  inside it instead of the enclosing function.
  """

  def __init__(self) -> None:
    self.found = False

  def visit_Await(self, node: cst.Await) -> None:
    self.found = True

  def visit_Yield(self, node: cst.Yield) -> None:
    self.found = True

  def visit_NamedExpr(self, node: cst.NamedExpr) -> None:
    self.found = True

  def visit_Lambda(self, node: cst.Lambda) -> bool:
    # A nested lambda already has its own scope.
    return False

  def on_visit(self, node: cst.CSTNode) -> bool:
    if self.found:
      return False
    return super().on_visit(node)


class DependencyKeyScanner(cst.CSTVisitor):
  """
  Lists the substitution keys of the dispatcher calls in a tree.

  Only calls of the emitted shape ``__definject__.dispatch(("m", "f", n), ...)``
  are recognized. Keys are reported once, in order of first appearance.

  Attributes:
    keys (List[DependencyKey]): The collected keys.
  """

  def __init__(self) -> None:
    self.keys: List[DependencyKey] = []

  def visit_Call(self, node: cst.Call) -> None:
    if not is_dotted_name(node.func) or get_full_name(node.func) != f"{DISPATCHER_ALIAS}.dispatch":
      return
    if not node.args or not isinstance(node.args[0].value, cst.Tuple):
      return
    elements = [element.value for element in node.args[0].value.elements]
    if len(elements) != 3:
      return
    module, function, arity = elements
    if not (
      isinstance(module, cst.SimpleString) and isinstance(function, cst.SimpleString) and isinstance(arity, cst.Integer)
    ):
      return
    key = (module.evaluated_value, function.evaluated_value, int(arity.evaluated_value))
    if key not in self.keys:
      self.keys.append(key)


def collect_dependency_keys(tree: cst.CSTNode) -> List[DependencyKey]:
  """
  Returns the substitution keys called through the dispatcher in ``tree``.

  Args:
    tree: A rewritten function body (or any node).

  Returns:
    List[DependencyKey]: Keys in order of first appearance.
  """
  scanner = DependencyKeyScanner()
  tree.visit(scanner)
  return scanner.keys
