from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from ..db import get_db
from ..logging_config import preview
from ..models import Sentence, StudyRecord
from ..settings import settings
from .auth import User, get_current_user

router = APIRouter(prefix="/api", tags=["sentences"])
logger = logging.getLogger(__name__)

_DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2})?$"


class AddSentenceRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	japanese_text: Optional[str] = Field(default=None, alias="japaneseText")
	korean_meaning: Optional[str] = Field(default=None, alias="koreanMeaning")
	furigana: Optional[str] = None
	key_words: Optional[str] = Field(default=None, alias="keyWords")


def _with_record_query(db: Session, user_id: int, date: Optional[str]):
	pass_count = func.coalesce(StudyRecord.pass_count, 0)
	fail_count = func.coalesce(StudyRecord.fail_count, 0)
	query = (
		db.query(
			Sentence,
			pass_count.label("pass_count"),
			fail_count.label("fail_count"),
			StudyRecord.last_studied,
			StudyRecord.last_score,
		)
		.outerjoin(
			StudyRecord,
			and_(StudyRecord.sentence_id == Sentence.id, StudyRecord.user_id == user_id),
		)
		.filter(Sentence.user_id == user_id)
	)
	if date:
		query = query.filter(func.date(Sentence.created_at) == date)
	return query, pass_count + fail_count


def _sentence_out(sentence: Sentence, pass_count: int, fail_count: int, last_studied, last_score) -> Dict[str, Any]:
	return {
		"id": sentence.id,
		"user_id": sentence.user_id,
		"japanese_text": sentence.japanese_text,
		"korean_meaning": sentence.korean_meaning,
		"furigana": sentence.furigana,
		"key_words": sentence.key_words,
		"created_at": sentence.created_at,
		"pass_count": pass_count,
		"fail_count": fail_count,
		"last_studied": last_studied,
		"last_score": last_score,
	}


@router.post("/sentences")
def add_sentence(req: AddSentenceRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	japanese_text = (req.japanese_text or "").strip()
	korean_meaning = (req.korean_meaning or "").strip()
	logger.info(
		"sentence add attempt user_id=%s text=%r meaning=%r",
		user.id, preview(japanese_text), preview(korean_meaning),
	)
	if not japanese_text or not korean_meaning:
		logger.warning(
			"sentence add rejected: missing fields user_id=%s text=%s meaning=%s",
			user.id, not japanese_text, not korean_meaning,
		)
		raise HTTPException(status_code=400, detail="japaneseText and koreanMeaning are required")

	row = Sentence(
		user_id=user.id,
		japanese_text=japanese_text,
		korean_meaning=korean_meaning,
		furigana=req.furigana,
		key_words=req.key_words,
	)
	db.add(row)
	db.commit()
	db.refresh(row)
	logger.info("sentence added user_id=%s sentence_id=%s", user.id, row.id)
	return {"message": "Sentence added successfully", "sentenceId": row.id}


@router.get("/sentences")
def list_sentences(
	date: Optional[str] = Query(default=None, pattern=_DATE_PATTERN),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
	query, _ = _with_record_query(db, user.id, date)
	rows = query.order_by(Sentence.created_at.desc(), Sentence.id.desc()).all()
	return [_sentence_out(*row) for row in rows]


@router.get("/test-sentences")
def test_sentences(
	count: Optional[int] = Query(default=None, ge=1, le=100),
	date: Optional[str] = Query(default=None, pattern=_DATE_PATTERN),
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
) -> List[Dict[str, Any]]:
	limit = count or settings.default_test_count
	query, attempts = _with_record_query(db, user.id, date)
	# Least practised first; random among equals
	rows = query.order_by(attempts.asc(), func.random()).limit(limit).all()
	logger.info("test sentences user_id=%s requested=%s returned=%s", user.id, limit, len(rows))
	return [_sentence_out(*row) for row in rows]
