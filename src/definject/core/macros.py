"""
Scoped Macro-Call Handler.

A macro-only function (declared with ``definject.macro``) cannot be deferred to
a runtime lookup in the dependency map. Its call is instead wrapped in a block
that imports the function locally and calls it unqualified::

    calc.macro_sum(10, 20)

becomes::

    (lambda macro_sum=__import__("calc", fromlist=("macro_sum",)).macro_sum: macro_sum(10, 20))()

The lambda is the block: its defaulted parameter is the local import and its
body the unqualified call, so the binding never leaks into sibling expressions.
"""

import builtins

import libcst as cst

from definject.core.context import ResolutionContext
from definject.core.scanners import FrameBoundScanner, NameUsageScanner
from definject.core.types import QualifiedCall

_IMPORT_BUILTIN = "__import__"


def handle_macro_call(call: QualifiedCall, env: ResolutionContext) -> cst.BaseExpression:
  """
  Rewrites a macro-only call into a block-scoped local import plus unqualified call.

  Args:
      call: The resolved call. Its arguments are expected to be rewritten already.
      env: Resolution context of the function.

  Returns:
      cst.BaseExpression: The scoped block, or the direct call when its
      arguments must be evaluated in the enclosing frame or when the
      import builtin is shadowed.
  """
  if env.lookup(_IMPORT_BUILTIN) is not builtins.__import__ or _needs_enclosing_frame(call.node):
    return call.node

  binding = _binding_name(call.function, call.node)
  template = cst.parse_expression(
    f'(lambda {binding}={_IMPORT_BUILTIN}("{call.module}", fromlist=("{call.function}",)).{call.function}: {binding}())()'
  )
  block = cst.ensure_type(template, cst.Call)
  scope = cst.ensure_type(block.func, cst.Lambda)
  unqualified = cst.ensure_type(scope.body, cst.Call).with_changes(args=call.node.args)

  return block.with_changes(
    func=scope.with_changes(body=unqualified),
    lpar=call.node.lpar,
    rpar=call.node.rpar,
  )


def is_scoped_import_block(node: cst.CSTNode) -> bool:
  """
  Recognizes the block emitted by ``handle_macro_call``.

  Args:
      node: Any node.

  Returns:
      bool: True if ``node`` is ``(lambda f=__import__(...).f: f(...))()``.
  """
  if not isinstance(node, cst.Call) or node.args or not isinstance(node.func, cst.Lambda):
    return False
  params = node.func.params
  if len(params.params) != 1 or params.star_arg is not cst.MaybeSentinel.DEFAULT or params.kwonly_params:
    return False
  binding = params.params[0]
  loader = binding.default
  if not isinstance(loader, cst.Attribute) or not isinstance(loader.value, cst.Call):
    return False
  importer = loader.value.func
  if not isinstance(importer, cst.Name) or importer.value != _IMPORT_BUILTIN:
    return False
  body = node.func.body
  return isinstance(body, cst.Call) and isinstance(body.func, cst.Name) and body.func.value == binding.name.value


def scoped_block_body(node: cst.Call) -> cst.Call:
  """Returns the unqualified call inside a scoped import block."""
  return cst.ensure_type(cst.ensure_type(node.func, cst.Lambda).body, cst.Call)


def _needs_enclosing_frame(call: cst.Call) -> bool:
  scanner = FrameBoundScanner()
  for arg in call.args:
    arg.value.visit(scanner)
  return scanner.found


def _binding_name(function: str, call: cst.Call) -> str:
  """Picks a name for the local import that no argument refers to."""
  scanner = NameUsageScanner()
  for arg in call.args:
    arg.value.visit(scanner)

  binding = function
  while binding in scanner.names:
    binding += "_"
  return binding
