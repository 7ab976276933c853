from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Sentence, StudyRecord
from ..scoring import grade
from ..settings import settings
from .auth import User, get_current_user

router = APIRouter(prefix="/api", tags=["study"])
logger = logging.getLogger(__name__)


class GradeRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	sentence_id: Optional[int] = Field(default=None, alias="sentenceId")
	reference: Optional[str] = None
	answer: str
	drop_annotations: bool = Field(default=False, alias="dropAnnotations")


class AlignmentItem(BaseModel):
	original: str
	user: str
	isCorrect: bool


class GradeResponse(BaseModel):
	score: int
	passed: bool
	alignment: List[AlignmentItem]


class TestResultRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	sentence_id: int = Field(alias="sentenceId")
	passed: Optional[bool] = None
	score: Optional[int] = Field(default=None, ge=0, le=100)


def _owned_sentence(db: Session, user: User, sentence_id: int) -> Sentence:
	row = db.get(Sentence, sentence_id)
	if row is None or row.user_id != user.id:
		raise HTTPException(status_code=404, detail="Sentence not found")
	return row


@router.post("/grade", response_model=GradeResponse)
def grade_answer(req: GradeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if req.sentence_id is not None:
		reference = _owned_sentence(db, user, req.sentence_id).japanese_text
	elif req.reference is not None:
		reference = req.reference
	else:
		raise HTTPException(status_code=400, detail="sentenceId or reference is required")

	result = grade(
		reference,
		req.answer,
		pass_threshold=settings.pass_threshold,
		drop_annotations=req.drop_annotations,
	)
	logger.info(
		"graded user_id=%s sentence_id=%s score=%s passed=%s",
		user.id, req.sentence_id, result.score, result.passed,
	)
	return result.to_dict()


def _increment(db: Session, user_id: int, sentence_id: int, passed: bool, score: Optional[int]) -> int:
	values = {
		"pass_count": StudyRecord.pass_count + (1 if passed else 0),
		"fail_count": StudyRecord.fail_count + (0 if passed else 1),
		"last_studied": datetime.utcnow(),
	}
	# A result without a score keeps the previous one
	if score is not None:
		values["last_score"] = score
	stmt = (
		update(StudyRecord)
		.where(StudyRecord.user_id == user_id, StudyRecord.sentence_id == sentence_id)
		.values(**values)
	)
	return db.execute(stmt).rowcount or 0


@router.post("/test-result")
def save_test_result(req: TestResultRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	_owned_sentence(db, user, req.sentence_id)
	if req.passed is not None:
		passed = req.passed
	elif req.score is not None:
		passed = req.score >= settings.pass_threshold
	else:
		raise HTTPException(status_code=400, detail="passed or score is required")

	if not _increment(db, user.id, req.sentence_id, passed, req.score):
		db.add(StudyRecord(
			user_id=user.id,
			sentence_id=req.sentence_id,
			pass_count=1 if passed else 0,
			fail_count=0 if passed else 1,
			last_score=req.score,
			last_studied=datetime.utcnow(),
		))
		try:
			db.commit()
		except IntegrityError:
			# Another request created the row first
			db.rollback()
			_increment(db, user.id, req.sentence_id, passed, req.score)
			db.commit()
	else:
		db.commit()

	logger.info(
		"test result saved user_id=%s sentence_id=%s passed=%s score=%s",
		user.id, req.sentence_id, passed, req.score,
	)
	return {"message": "Test result saved successfully"}


@router.get("/stats")
def study_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	sentences = db.query(func.count(Sentence.id)).filter(Sentence.user_id == user.id).scalar() or 0
	passes, fails = db.query(
		func.coalesce(func.sum(StudyRecord.pass_count), 0),
		func.coalesce(func.sum(StudyRecord.fail_count), 0),
	).filter(StudyRecord.user_id == user.id).one()
	attempts = passes + fails
	return {
		"sentences": sentences,
		"attempts": attempts,
		"passes": passes,
		"fails": fails,
		"pass_rate": round(passes / attempts * 100, 1) if attempts else 0.0,
	}
