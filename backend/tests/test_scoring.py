import pytest

from jpsentence.normalize import normalize
from jpsentence.scoring import (
	PASS_THRESHOLD,
	AlignmentEntry,
	InvalidArgument,
	align,
	grade,
	project,
	score,
)


def _flags(result):
	return [e.is_correct for e in result.alignment]


def test_align_recovers_deleted_character():
	# A left-to-right greedy scan only finds "a" here
	assert align("abcd", "acd") == frozenset({0, 2, 3})


def test_align_with_inserted_character():
	assert align("abc", "axbc") == frozenset({0, 1, 2})


def test_align_empty_inputs():
	assert align("", "") == frozenset()
	assert align("abc", "") == frozenset()
	assert align("", "abc") == frozenset()


def test_align_no_overlap():
	assert align("あいう", "かきく") == frozenset()


@pytest.mark.parametrize("ref,attempt", [
	("abcd", "acd"),
	("今日は晴れです", "今日は雨です"),
	("aaaa", "aa"),
	("abc", "cba"),
	("x", "xxxxxx"),
])
def test_match_count_bounded_by_shorter(ref, attempt):
	matches = align(ref, attempt)
	assert len(matches) <= min(len(ref), len(attempt))
	assert all(0 <= i < len(ref) for i in matches)


def test_score_equal_forms_is_100():
	assert score("", "", frozenset()) == 100
	assert score("ab", "ab", frozenset({0, 1})) == 100


def test_score_partial():
	assert score("abcd", "acd", align("abcd", "acd")) == 75


def test_score_rounds_half_up():
	# 1/8 = 12.5
	assert score("abcdefgh", "a", frozenset({0})) == 13
	# 179/200 = 89.5
	ref = "あ" * 200
	attempt = "あ" * 179
	assert score(ref, attempt, align(ref, attempt)) == 90
	assert grade(ref, attempt).passed


def test_score_empty_attempt_is_zero():
	assert score("abc", "", frozenset()) == 0
	assert grade("私は学生です。", "").score == 0


def test_scenario_missing_final_mark():
	result = grade("私は学生です。", "私は学生です")
	assert result.score == 100
	assert result.passed
	assert all(_flags(result))
	assert len(result.alignment) == len("私は学生です。")


def test_scenario_substituted_word():
	result = grade("今日は晴れです。", "今日は雨です。")
	assert 0 < result.score < 100
	assert result.score == 71
	assert not result.passed
	assert _flags(result) == [True, True, True, False, False, True, True, True]
	# positional pairing
	assert [e.user for e in result.alignment] == ["今", "日", "は", "雨", "で", "す", "。", ""]


def test_scenario_empty_reference():
	result = grade("", "x")
	assert result.score == 0
	assert not result.passed
	assert result.alignment == [AlignmentEntry("", "x", False)]
	assert result.to_dict()["alignment"] == [{"original": "", "user": "x", "isCorrect": False}]


def test_scenario_bracket_characters():
	assert grade("猫（ねこ）", "猫ねこ").score == 100
	assert grade("猫（ねこ）", "猫").score == 33
	result = grade("猫（ねこ）", "猫", drop_annotations=True)
	assert result.score == 100
	assert all(_flags(result))


def test_equal_canonical_forms_always_100():
	pairs = [
		("こんにちは。", "こんにちは"),
		("はい、 そうです！", "はいそうです"),
		("[a] b", "ab"),
		("", "  。 "),
	]
	for ref, attempt in pairs:
		assert normalize(ref) == normalize(attempt)
		assert grade(ref, attempt).score == 100


def test_trailing_garbage_never_raises_score():
	exact = grade("私は学生です", "私は学生です")
	padded = grade("私は学生です", "私は学生ですxyz")
	assert padded.score <= exact.score
	assert padded.score == 67
	assert padded.alignment[-3:] == [
		AlignmentEntry("", "x", False),
		AlignmentEntry("", "y", False),
		AlignmentEntry("", "z", False),
	]
	assert len(padded.alignment) == len("私は学生です") + 3


def test_punctuation_never_penalised():
	result = grade("はい。", "")
	assert _flags(result) == [False, False, True]
	assert [e.user for e in result.alignment] == ["", "", ""]


def test_whitespace_in_reference_shown_correct():
	result = grade("a b", "axb")
	assert _flags(result) == [True, True, True]
	assert result.score == 67


def test_pass_threshold_is_overridable():
	assert PASS_THRESHOLD == 90
	assert not grade("abcd", "acd").passed
	assert grade("abcd", "acd", pass_threshold=75).passed
	assert grade("abcd", "", pass_threshold=0).passed


def test_grade_rejects_non_strings():
	with pytest.raises(InvalidArgument):
		grade(None, "x")
	with pytest.raises(InvalidArgument):
		grade("x", 3)
	with pytest.raises(InvalidArgument):
		grade(b"x", "x")


def test_grade_rejects_bad_threshold():
	with pytest.raises(InvalidArgument):
		grade("a", "a", pass_threshold=101)
	with pytest.raises(InvalidArgument):
		grade("a", "a", pass_threshold=True)
	with pytest.raises(InvalidArgument):
		grade("a", "a", pass_threshold=89.5)


def test_project_rejects_mismatched_canonical_form():
	with pytest.raises(InvalidArgument):
		project("abc", "abc", "ab", "abc", frozenset())
	with pytest.raises(InvalidArgument):
		project("ab", "a", "ab", "a", frozenset({0, 1}))


def test_to_dict_shape():
	data = grade("あい", "あう").to_dict()
	assert data == {
		"score": 50,
		"passed": False,
		"alignment": [
			{"original": "あ", "user": "あ", "isCorrect": True},
			{"original": "い", "user": "う", "isCorrect": False},
		],
	}


def test_leading_byte_order_mark_ignored():
	result = grade("\ufeffはい", "はい")
	assert result.score == 100
	assert result.alignment[0] == AlignmentEntry("\ufeff", "は", True)
