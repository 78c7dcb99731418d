# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: Sławomir Liszniański; created: 2026-10-19
"""
Textual front-end: ownership scripts lowered to verification graphs.
"""

from .parser import Script, ScriptError, parse_file, parse_script

__all__ = ["Script", "ScriptError", "parse_file", "parse_script"]
