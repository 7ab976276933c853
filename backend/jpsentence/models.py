from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, UniqueConstraint
from .db import Base


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, autoincrement=True)
	username = Column(String(128), unique=True, nullable=False, index=True)
	email = Column(String(256), unique=True, nullable=False, index=True)
	password_hash = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Sentence(Base):
	__tablename__ = "sentences"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	# Reference text graded against; never edited after creation
	japanese_text = Column(Text, nullable=False)
	korean_meaning = Column(Text, nullable=False)
	furigana = Column(Text, nullable=True)
	key_words = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class StudyRecord(Base):
	__tablename__ = "study_records"
	__table_args__ = (UniqueConstraint("user_id", "sentence_id", name="uq_study_records_user_sentence"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
	sentence_id = Column(Integer, ForeignKey("sentences.id"), nullable=False, index=True)
	pass_count = Column(Integer, default=0, nullable=False)
	fail_count = Column(Integer, default=0, nullable=False)
	last_score = Column(Integer, nullable=True)
	last_studied = Column(DateTime, nullable=True)
