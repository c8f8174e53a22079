from __future__ import annotations

from typing import Optional


def normalize_stdin(raw: Optional[str]) -> str:
	"""Canonicalize stdin before sending it to the execution service.

	Handles the usual cases:
	- Windows / old Mac line endings ("\\r\\n", "\\r") become "\\n".
	- Test-case input stored with escape sequences ("\\\\n", "\\\\t", "\\\\r") becomes
	  real newlines/tabs, since challenge authors often paste it that way.
	- Input that is already unescaped is left as is.
	"""
	if raw is None:
		return ""

	s = str(raw)

	s = s.replace("\r\n", "\n").replace("\r", "\n")

	# Escape sequences stored literally
	s = s.replace("\\r\\n", "\n").replace("\\r", "\n")
	s = s.replace("\\n", "\n").replace("\\t", "\t")

	return s
