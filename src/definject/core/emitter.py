"""
Substitution Emitter.

Builds the dispatcher call that replaces an injectable call::

    calc.to_int(a)

becomes::

    __definject__.dispatch(("calc", "to_int", 1), [a], deps)

Keyword arguments are forwarded as a ``kwargs`` dictionary and do not count
toward the arity of the key.

Commas and line breaks between the original arguments are carried into the
list and dictionary, so a call written over several lines still spans the
same number of lines once emitted.
"""

from typing import List, Sequence, Tuple, Union

import libcst as cst

from definject.core.types import DISPATCHER_ALIAS, QualifiedCall

_NO_SPACE = cst.SimpleWhitespace("")


def emit(call: QualifiedCall, map_var: str) -> cst.Call:
  """
  Produces ``dispatch(key, [args...], map_var)`` for a resolved call.

  Args:
      call: The resolved call. Its arguments are expected to be rewritten already.
      map_var: Name of the dependency-map variable in the enclosing function.

  Returns:
      cst.Call: The dispatcher invocation. Parentheses around the original call
      are kept.
  """
  module, function, arity = call.key
  positional = call.positional_args
  keywords = call.keyword_args
  forward = ", kwargs={}" if keywords else ""
  template = cst.parse_expression(
    f'{DISPATCHER_ALIAS}.dispatch(("{module}", "{function}", {arity}), [], {map_var}{forward})'
  )
  dispatch = cst.ensure_type(template, cst.Call)

  # The whitespace after "(" opens whichever container comes first.
  opening = call.node.whitespace_before_args
  list_opening = opening if positional or not keywords else _NO_SPACE

  elements, closing = _carry_layout(positional)
  args = list(dispatch.args)
  args[1] = args[1].with_changes(
    value=cst.List(
      [cst.Element(value=_as_element(arg.value), comma=comma) for arg, comma in elements],
      lbracket=cst.LeftSquareBracket(whitespace_after=list_opening),
      rbracket=cst.RightSquareBracket(whitespace_before=closing),
    )
  )
  if keywords:
    entries, closing = _carry_layout(keywords)
    forwarded = [
      cst.DictElement(key=cst.SimpleString(f'"{arg.keyword.value}"'), value=_as_element(arg.value), comma=comma)
      for arg, comma in entries
    ]
    args[3] = args[3].with_changes(
      value=cst.Dict(
        forwarded,
        lbrace=cst.LeftCurlyBrace(whitespace_after=_NO_SPACE if positional else opening),
        rbrace=cst.RightCurlyBrace(whitespace_before=closing),
      )
    )

  return dispatch.with_changes(args=args, lpar=call.node.lpar, rpar=call.node.rpar)


def _as_element(value: cst.BaseExpression) -> cst.BaseExpression:
  """A generator that was the sole argument needs its own parentheses in a list."""
  if isinstance(value, cst.GeneratorExp) and not value.lpar:
    return value.with_changes(lpar=[cst.LeftParen()], rpar=[cst.RightParen()])
  return value


def _carry_layout(
  args: Sequence[cst.Arg],
) -> Tuple[List[Tuple[cst.Arg, Union[cst.Comma, cst.MaybeSentinel]]], cst.BaseParenthesizableWhitespace]:
  """
  Pairs each argument with the comma to emit after it.

  The last argument keeps its comma only when a line break follows it. That
  line break, if any, moves before the closing bracket.

  Returns:
      The ``(arg, comma)`` pairs and the whitespace before the closing bracket.
  """
  pairs: List[Tuple[cst.Arg, Union[cst.Comma, cst.MaybeSentinel]]] = []
  closing: cst.BaseParenthesizableWhitespace = _NO_SPACE
  for index, arg in enumerate(args):
    after = _whitespace_after(arg)
    before = arg.comma.whitespace_before if isinstance(arg.comma, cst.Comma) else _NO_SPACE
    if index < len(args) - 1:
      pairs.append((arg, cst.Comma(whitespace_before=before, whitespace_after=after)))
      continue
    if isinstance(after, cst.ParenthesizedWhitespace):
      closing = after
      if isinstance(arg.comma, cst.Comma):
        pairs.append((arg, cst.Comma(whitespace_before=before, whitespace_after=_NO_SPACE)))
        continue
    pairs.append((arg, cst.MaybeSentinel.DEFAULT))
  return pairs, closing


def _whitespace_after(arg: cst.Arg) -> cst.BaseParenthesizableWhitespace:
  """Whitespace following an argument and its comma, preferring a line break."""
  candidates = [arg.comma.whitespace_after] if isinstance(arg.comma, cst.Comma) else []
  candidates.append(arg.whitespace_after_arg)
  for whitespace in candidates:
    if isinstance(whitespace, cst.ParenthesizedWhitespace):
      return whitespace
  for whitespace in candidates:
    if isinstance(whitespace, cst.SimpleWhitespace) and whitespace.value:
      return whitespace
  return cst.SimpleWhitespace(" ")
