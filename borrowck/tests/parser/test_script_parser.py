# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""Ownership scripts → verification graphs."""

import pytest
from lark.exceptions import UnexpectedInput

from borrowck import DiagnosticKind, Verifier
from borrowck import graph as G
from borrowck.core.types_core import Semantics, TypeClassifier
from borrowck.parser import ScriptError, parse_script


def test_statements_lower_to_graph_nodes():
	script = parse_script(
		"""
let a: String = "hi"
let n: Int
b = a
c = clone b
clone c
n = 3
read n
ref r = &c
ref m = &mut b
release r
""",
		file="demo.own",
	)
	kinds = [type(node).__name__ for node in script.graph]
	assert kinds == [
		"Declare",
		"Declare",
		"Assign",
		"Clone",
		"Clone",
		"Assign",
		"Read",
		"Borrow",
		"Borrow",
		"ReleaseBorrow",
	]
	nodes = script.graph.nodes
	assert nodes[0].initialized and not nodes[1].initialized
	assert (nodes[2].dest, nodes[2].src) == ("b", "a")
	assert (nodes[3].src, nodes[3].dest) == ("b", "c")
	assert nodes[4].dest is None
	assert nodes[5].src is None
	assert nodes[7].kind is G.BorrowKind.SHARED
	assert nodes[8].kind is G.BorrowKind.EXCLUSIVE
	assert nodes[0].loc.file == "demo.own"
	assert nodes[0].loc.line == 2
	assert script.graph.name == "demo.own"


def test_blocks_branches_and_loops():
	script = parse_script("if { read a } else { read b } if { read c }\nloop { { read d } }")
	branch, single, loop = script.graph.nodes
	assert isinstance(branch, G.Branch) and len(branch.arms) == 2
	assert isinstance(single, G.Branch) and len(single.arms) == 2 and len(single.arms[1]) == 0
	assert isinstance(loop, G.Loop)
	assert [type(n) for n in loop.body] == [G.ScopeEnter, G.Read, G.ScopeExit]


def test_types_and_structs():
	script = parse_script(
		"""
struct Point { x: Int, y: Int }
struct Named { id: Uint, name: String, }
let p: Point = new
let q: Named = new
let t: (Int, Bool) = new
let arr: [Point; 4] = new
let v: Vec[Int] = new
let s: &String = new
let w: &mut Int = new
let k: Unknown = new
"""
	)
	cls = TypeClassifier(script.types)
	sems = {node.name: cls.classify(node.ty) for node in script.graph}
	assert sems == {
		"p": Semantics.COPY,
		"q": Semantics.MOVE,
		"t": Semantics.COPY,
		"arr": Semantics.COPY,
		"v": Semantics.MOVE,
		"s": Semantics.COPY,
		"w": Semantics.MOVE,
		"k": Semantics.MOVE,
	}
	assert script.structs == ["Point", "Named"]


def test_semicolons_and_comments_are_accepted():
	script = parse_script("let a: Int = 1; read a; # trailing\n// whole line\nread a;")
	assert len(script.graph) == 3


def test_unknown_type_is_a_script_error():
	with pytest.raises(ScriptError) as exc:
		parse_script("let a: Strin = new", file="x.own")
	assert exc.value.span.line == 1
	assert "unknown type 'Strin'" in str(exc.value)


def test_generic_misuse_is_a_script_error():
	with pytest.raises(ScriptError):
		parse_script("let a: Vec = new")
	with pytest.raises(ScriptError):
		parse_script("let a: Int[Int] = new")


def test_duplicate_struct_is_a_script_error():
	with pytest.raises(ScriptError):
		parse_script("struct P { a: Int }\nstruct P { b: Int }")


def test_syntax_error_propagates_from_lark():
	with pytest.raises(UnexpectedInput):
		parse_script("let = 3")


def test_parsed_script_verifies():
	script = parse_script(
		"""
struct Pair { a: Int, b: String }
let p: Pair = new
q = p
read p
"""
	)
	result = Verifier(script.types).verify(script.graph)
	(diag,) = result.diagnostics()
	assert diag.kind is DiagnosticKind.MOVED_VALUE_USE
	assert diag.span.line == 5
