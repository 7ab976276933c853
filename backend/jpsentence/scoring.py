"""
Answer scoring for recall tests.

A test attempt is graded in four steps:

1. both strings are reduced to their canonical form (see ``normalize``),
2. ``align`` finds the reference positions taking part in a longest common
   subsequence of the two canonical forms,
3. ``score`` turns the match count into a 0-100 percentage,
4. ``project`` maps the matches back onto the original reference so the client
   can highlight each character as correct or incorrect.

``grade`` runs the whole pipeline and is what the HTTP layer calls.

Display pairing in ``project`` is positional: original reference character ``i``
is shown next to attempt character ``i``. Only the correctness flag comes from
the alignment, so after an insertion or deletion the visual pairing drifts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List

from .normalize import kept_mask, normalize

PASS_THRESHOLD = 90


class InvalidArgument(TypeError):
	"""Raised when the scorer is called with values it cannot grade."""


@dataclass(frozen=True)
class AlignmentEntry:
	original: str
	user: str
	is_correct: bool

	def to_dict(self) -> Dict[str, Any]:
		return {"original": self.original, "user": self.user, "isCorrect": self.is_correct}


@dataclass(frozen=True)
class GradeResult:
	score: int
	passed: bool
	match_count: int
	alignment: List[AlignmentEntry] = field(default_factory=list)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"score": self.score,
			"passed": self.passed,
			"alignment": [e.to_dict() for e in self.alignment],
		}


def _require_str(name: str, value: Any) -> str:
	if not isinstance(value, str):
		raise InvalidArgument(f"{name} must be a string, got {type(value).__name__}")
	return value


def align(canonical_ref: str, canonical_attempt: str) -> FrozenSet[int]:
	"""
	Indices into ``canonical_ref`` that belong to a longest common subsequence
	with ``canonical_attempt``.

	Classic O(m*n) table; inputs are single sentences. When both neighbours of a
	cell hold the same LCS length the backtrace moves up (drops a reference
	character) first, which only changes which of several equally long
	alignments is reported.
	"""
	m, n = len(canonical_ref), len(canonical_attempt)
	if m == 0 or n == 0:
		return frozenset()

	dp = [[0] * (n + 1) for _ in range(m + 1)]
	for i in range(1, m + 1):
		ref_ch = canonical_ref[i - 1]
		row, prev = dp[i], dp[i - 1]
		for j in range(1, n + 1):
			if ref_ch == canonical_attempt[j - 1]:
				row[j] = prev[j - 1] + 1
			else:
				row[j] = max(prev[j], row[j - 1])

	matched = set()
	i, j = m, n
	while i > 0 and j > 0:
		if canonical_ref[i - 1] == canonical_attempt[j - 1]:
			matched.add(i - 1)
			i -= 1
			j -= 1
		elif dp[i - 1][j] >= dp[i][j - 1]:
			i -= 1
		else:
			j -= 1
	return frozenset(matched)


def score(canonical_ref: str, canonical_attempt: str, match_set: FrozenSet[int]) -> int:
	"""
	Percentage of the longer canonical string covered by the match set.

	Identical canonical forms always score 100 (this also covers two empty
	strings). Otherwise ``100 * matches / longest`` rounded half-up, so 89.5
	becomes 90. Integer arithmetic keeps the boundary exact.
	"""
	if canonical_ref == canonical_attempt:
		return 100
	longest = max(len(canonical_ref), len(canonical_attempt))
	return (200 * len(match_set) + longest) // (2 * longest)


def project(
	original_ref: str,
	original_attempt: str,
	canonical_ref: str,
	canonical_attempt: str,
	match_set: FrozenSet[int],
	*,
	drop_annotations: bool = False,
) -> List[AlignmentEntry]:
	"""
	Tag every original reference character, then every surplus attempt
	character, for display.

	Characters removed by normalization are always shown as correct and do not
	advance the canonical cursor. Surplus attempt characters past the end of the
	reference are always incorrect.
	"""
	mask = kept_mask(original_ref, drop_annotations=drop_annotations)
	if sum(mask) != len(canonical_ref):
		raise InvalidArgument("canonical_ref is not the canonical form of original_ref")
	if len(match_set) > min(len(canonical_ref), len(canonical_attempt)):
		raise InvalidArgument("match_set is larger than the shorter canonical string")

	entries: List[AlignmentEntry] = []
	cursor = 0
	for i, ch in enumerate(original_ref):
		user_ch = original_attempt[i] if i < len(original_attempt) else ""
		if not mask[i]:
			entries.append(AlignmentEntry(ch, user_ch, True))
			continue
		entries.append(AlignmentEntry(ch, user_ch, cursor in match_set))
		cursor += 1

	for user_ch in original_attempt[len(original_ref):]:
		entries.append(AlignmentEntry("", user_ch, False))
	return entries


def grade(
	reference: str,
	attempt: str,
	*,
	pass_threshold: int = PASS_THRESHOLD,
	drop_annotations: bool = False,
) -> GradeResult:
	"""Score ``attempt`` against ``reference`` and build the highlight alignment."""
	_require_str("reference", reference)
	_require_str("attempt", attempt)
	if isinstance(pass_threshold, bool) or not isinstance(pass_threshold, int) or not 0 <= pass_threshold <= 100:
		raise InvalidArgument(f"pass_threshold must be an integer in 0..100, got {pass_threshold!r}")

	canonical_ref = normalize(reference, drop_annotations=drop_annotations)
	canonical_attempt = normalize(attempt, drop_annotations=drop_annotations)
	matches = align(canonical_ref, canonical_attempt)
	value = score(canonical_ref, canonical_attempt, matches)
	alignment = project(
		reference,
		attempt,
		canonical_ref,
		canonical_attempt,
		matches,
		drop_annotations=drop_annotations,
	)
	return GradeResult(score=value, passed=value >= pass_threshold, match_count=len(matches), alignment=alignment)
