from __future__ import annotations
import re
from typing import List

# Paired brackets (ASCII and full-width) and sentence punctuation that carry no
# meaning for recall grading. Whitespace of any kind is stripped as well.
BRACKET_CHARS = "[]()（）［］"
PUNCTUATION_CHARS = "、。！？"
# Byte-order mark; str.isspace() does not count it as whitespace
EXTRA_SPACE_CHARS = "\ufeff"
STRIPPED_CHARS = frozenset(BRACKET_CHARS + PUNCTUATION_CHARS + EXTRA_SPACE_CHARS)

# A bracketed reading written after a word, e.g. 猫（ねこ）
_ANNOTATION_RE = re.compile(r"\([^()]*\)|（[^（）]*）|\[[^\[\]]*\]|［[^［］]*］")


def is_stripped(ch: str) -> bool:
	"""True when ``ch`` is ignored for comparison (whitespace, brackets, punctuation)."""
	return ch.isspace() or ch in STRIPPED_CHARS


def kept_mask(text: str, *, drop_annotations: bool = False) -> List[bool]:
	"""
	Return one flag per character of ``text``: True when the character survives
	normalization. ``normalize`` and the display projection both read this mask,
	so they always agree on which original characters map to the canonical form.
	"""
	mask = [not is_stripped(ch) for ch in text]
	if drop_annotations:
		for m in _ANNOTATION_RE.finditer(text):
			for i in range(m.start(), m.end()):
				mask[i] = False
	return mask


def normalize(text: str, *, drop_annotations: bool = False) -> str:
	"""
	Canonical comparison form of ``text``.

	Removes every whitespace character (plus U+FEFF), the bracket characters ``[]()（）［］``
	and the marks ``、。！？``. Order and case of the remaining characters are
	unchanged. With ``drop_annotations`` bracketed readings are removed
	together with their content first.
	"""
	mask = kept_mask(text, drop_annotations=drop_annotations)
	return "".join(ch for ch, keep in zip(text, mask) if keep)
