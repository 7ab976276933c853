from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User as UserRow, Sentence, StudyRecord
from .auth import User, get_current_user, hash_password

router = APIRouter(prefix="/api", tags=["users"])
logger = logging.getLogger(__name__)


class UpdateUserRequest(BaseModel):
	username: Optional[str] = None
	email: Optional[str] = None
	password: Optional[str] = None


@router.put("/user")
def update_user(req: UpdateUserRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	changes = {}
	username = (req.username or "").strip()
	email = (req.email or "").strip()
	if username:
		changes["username"] = username
	if email:
		changes["email"] = email
	if req.password:
		changes["password_hash"] = hash_password(req.password)
	if not changes:
		raise HTTPException(status_code=400, detail="No fields to update")

	row = db.get(UserRow, user.id)
	for key, value in changes.items():
		setattr(row, key, value)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		logger.warning("user update rejected: uniqueness user_id=%s fields=%s", user.id, sorted(changes))
		raise HTTPException(status_code=400, detail="Username or email already exists")
	logger.info("user updated user_id=%s fields=%s", user.id, sorted(changes))
	return {"message": "User updated successfully"}


@router.delete("/user")
def delete_user(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	try:
		db.execute(delete(StudyRecord).where(StudyRecord.user_id == user.id))
		db.execute(delete(Sentence).where(Sentence.user_id == user.id))
		db.execute(delete(UserRow).where(UserRow.id == user.id))
		db.commit()
	except Exception:
		db.rollback()
		logger.exception("user delete failed user_id=%s", user.id)
		raise
	logger.info("user deleted user_id=%s", user.id)
	return {"message": "User deleted successfully"}


# Mounted by main only when DEBUG_ENDPOINTS is enabled
debug_router = APIRouter(prefix="/api/debug", tags=["debug"])


@debug_router.get("/users")
def list_users(db: Session = Depends(get_db)):
	rows = db.query(UserRow).order_by(UserRow.id).all()
	return [
		{"id": r.id, "username": r.username, "email": r.email, "created_at": r.created_at}
		for r in rows
	]
