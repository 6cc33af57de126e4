"""
Tests for the LibCST Scanners.
"""

import textwrap

import libcst as cst

from definject.core.scanners import (
  BoundNameScanner,
  FrameBoundScanner,
  NameUsageScanner,
  collect_dependency_keys,
  get_full_name,
  is_dotted_name,
)


def _scan_bound(source: str):
  scanner = BoundNameScanner()
  cst.parse_module(textwrap.dedent(source)).visit(scanner)
  return scanner.local_names


def test_get_full_name():
  assert get_full_name(cst.parse_expression("os.path.join")) == "os.path.join"
  assert get_full_name(cst.parse_expression("f().x")) == ""
  assert is_dotted_name(cst.parse_expression("a.b"))
  assert not is_dotted_name(cst.parse_expression("a[0].b"))


def test_bound_names_cover_binding_forms():
  names = _scan_bound(
    """
    def f(a, /, b=1, *args, c, **kwargs):
      d = e, [g, *h] = value
      i: int = 1
      j += 1
      for k in items:
        pass
      with open(p) as l:
        pass
      try:
        pass
      except ValueError as m:
        pass
      [n for o in items]
      if (q := 1):
        pass
      def r():
        pass
      class S:
        pass
      match value:
        case [t, *u] | {"k": t, **v}:
          pass
        case W(x=w):
          pass
      obj.attr = 1
      obj[0] = 2
    """
  )

  expected = {"f", "a", "b", "args", "c", "kwargs", "d", "e", "g", "h", "i", "j", "k", "l", "m", "o", "q", "r", "S", "t", "u", "v", "w"}
  assert expected <= names
  assert "obj" not in names
  assert "value" not in names


def test_global_declarations_are_not_local():
  names = _scan_bound(
    """
    def f():
      global calc
      calc = None
    """
  )
  assert "calc" not in names


def test_name_usage_skips_attributes_and_keywords():
  scanner = NameUsageScanner()
  cst.parse_expression("f(a.b, key=c, *d)").visit(scanner)
  assert scanner.names == {"f", "a", "c", "d"}


def test_frame_bound_scanner():
  def found(code: str) -> bool:
    scanner = FrameBoundScanner()
    cst.parse_expression(code).visit(scanner)
    return scanner.found

  assert found("[await x]")
  assert found("(yield)")
  assert found("(y := 1)")
  assert not found("lambda: (yield)")
  assert not found("a + b")


def test_collect_dependency_keys_in_order_without_duplicates():
  tree = cst.parse_module(
    textwrap.dedent(
      """
      __definject__.dispatch(("m", "b", 1), [x], deps)
      __definject__.dispatch(("m", "a", 0), [], deps)
      __definject__.dispatch(("m", "b", 1), [y], deps)
      other.dispatch(("m", "c", 0), [], deps)
      __definject__.dispatch(key, [], deps)
      """
    )
  )

  assert collect_dependency_keys(tree) == [("m", "b", 1), ("m", "a", 0)]
