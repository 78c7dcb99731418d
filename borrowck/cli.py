# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Command-line driver: parse ownership scripts and verify them.

Exit codes:
  0  every input was accepted
  1  at least one input was rejected, or failed to parse/load
  2  the verifier aborted on an internal invariant violation
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from lark.exceptions import UnexpectedInput

from borrowck.core.config import DEFAULT_MAX_LOOP_ITERATIONS, DEFAULT_MAX_SHARED_BORROWS, VerifierConfig
from borrowck.core.diagnostics import Diagnostic, InternalInvariantViolation
from borrowck.core.span import Span
from borrowck.drops import DropEvent
from borrowck.parser import ScriptError, parse_file
from borrowck.verifier import Verifier

_log = logging.getLogger("borrowck")

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_INTERNAL = 2


def _configure_logging(verbosity: int) -> None:
	"""0 → WARNING, 1 → INFO, 2+ → DEBUG."""
	level = logging.WARNING
	if verbosity == 1:
		level = logging.INFO
	elif verbosity >= 2:
		level = logging.DEBUG

	handler = logging.StreamHandler(sys.stderr)
	handler.setFormatter(logging.Formatter(fmt="[%(levelname)-5.5s] %(name)s: %(message)s"))
	root = logging.getLogger("borrowck")
	root.setLevel(level)
	if not root.handlers:
		root.addHandler(handler)


def _diag_to_json(diag: Diagnostic, phase: str, source: Path) -> dict:
	"""Render a Diagnostic to a structured JSON-friendly dict."""
	return {
		"phase": diag.phase or phase,
		"kind": diag.code,
		"message": diag.message,
		"severity": diag.severity,
		"file": diag.span.file or str(source),
		"line": diag.span.line,
		"column": diag.span.column,
		"notes": diag.notes,
	}


def _drop_to_json(event: DropEvent, source: Path) -> dict:
	return {
		"binding": event.binding,
		"type": event.type_name,
		"reason": event.reason,
		"file": event.span.file or str(source),
		"line": event.span.line,
		"column": event.span.column,
	}


def _front_end_error(phase: str, code: str, message: str, span: Span) -> dict:
	"""JSON-shaped record for a script that never reached the verifier."""
	return {
		"phase": phase,
		"kind": code,
		"message": message,
		"severity": "error",
		"file": span.file,
		"line": span.line,
		"column": span.column,
		"notes": [],
	}


def _syntax_error(err: UnexpectedInput, source: Path) -> dict:
	token = getattr(err, "token", None)
	char = getattr(err, "char", None)
	if token is not None and token.type == "$END":
		message = "unexpected end of input"
	elif token is not None:
		message = f"unexpected token '{token}'"
	elif char is not None:
		message = f"unexpected character '{char}'"
	else:
		message = "syntax error"
	span = Span(file=str(source), line=getattr(err, "line", None), column=getattr(err, "column", None))
	return _front_end_error("parser", "syntax-error", message, span)


def _check_file(path: Path, config: VerifierConfig) -> Tuple[int, List[dict], List[DropEvent]]:
	"""Verify one script; returns (exit code, diagnostic records, drops)."""
	try:
		script = parse_file(path)
	except OSError as err:
		message = f"cannot read file: {err.strerror or err}"
		return EXIT_REJECTED, [_front_end_error("driver", "io-error", message, Span(file=str(path)))], []
	except UnexpectedInput as err:
		return EXIT_REJECTED, [_syntax_error(err, path)], []
	except ScriptError as err:
		span = Span(file=str(path), line=err.span.line, column=err.span.column)
		return EXIT_REJECTED, [_front_end_error("parser", "script-error", err.message, span)], []

	verifier = Verifier(script.types, config)
	try:
		result = verifier.verify(script.graph)
	except InternalInvariantViolation as err:
		_log.debug("internal invariant violation in %s: %s", path, err)
		return EXIT_INTERNAL, [_diag_to_json(err.diagnostic, "borrowcheck", path)], []
	_log.info("%s: %s (%d drop(s))", path, "accepted" if result.accepted else "rejected", len(result.drops))
	code = EXIT_OK if result.accepted else EXIT_REJECTED
	return code, [_diag_to_json(d, "borrowcheck", path) for d in result.diagnostics()], list(result.drops)


def main(argv: list[str] | None = None) -> int:
	"""
	Verify each script given on the command line.

	With --json, prints one structured payload (exit_code, diagnostics, drops)
	on stdout; otherwise prints `file:line:col: severity: message` lines to
	stderr and, with --drops, the drop schedule to stdout.
	"""
	parser = argparse.ArgumentParser(prog="borrowck", description="Static ownership and borrow verifier for ownership scripts")
	parser.add_argument("source", type=Path, nargs="+", help="Path(s) to ownership script(s)")
	parser.add_argument(
		"--json",
		action="store_true",
		help="Emit diagnostics as JSON (phase/kind/message/severity/file/line/column/notes)",
	)
	parser.add_argument("--drops", action="store_true", help="Print the drop schedule of each script (always part of --json output)")
	parser.add_argument(
		"--max-loop-iterations",
		type=int,
		default=DEFAULT_MAX_LOOP_ITERATIONS,
		help=f"Loop fixed-point iteration bound (default: {DEFAULT_MAX_LOOP_ITERATIONS})",
	)
	parser.add_argument(
		"--max-shared-borrows",
		type=int,
		default=DEFAULT_MAX_SHARED_BORROWS,
		help=f"Maximum simultaneous shared borrows of one binding (default: {DEFAULT_MAX_SHARED_BORROWS})",
	)
	parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (repeatable)")
	args = parser.parse_args(argv)

	_configure_logging(args.verbose)
	try:
		config = VerifierConfig(
			max_loop_iterations=args.max_loop_iterations,
			max_shared_borrows=args.max_shared_borrows,
		)
	except ValueError as err:
		parser.error(str(err))

	exit_code = EXIT_OK
	json_diags: list[dict] = []
	json_drops: list[dict] = []
	for path in args.source:
		code, records, drops = _check_file(path, config)
		exit_code = max(exit_code, code)
		if args.json:
			json_diags.extend(records)
			json_drops.extend(_drop_to_json(ev, path) for ev in drops)
			continue
		for rec in records:
			line = "?" if rec["line"] is None else rec["line"]
			col = "?" if rec["column"] is None else rec["column"]
			print(f"{rec['file']}:{line}:{col}: {rec['severity']}: {rec['message']}", file=sys.stderr)
			for note in rec["notes"]:
				print(f"  note: {note}", file=sys.stderr)
		if args.drops:
			for ev in drops:
				print(f"{ev.span.render(str(path))}: drop {ev.binding}: {ev.type_name} ({ev.reason})")

	if args.json:
		payload = {"exit_code": exit_code, "diagnostics": json_diags, "drops": json_drops}
		print(json.dumps(payload))
	return exit_code


__all__ = ["main"]
