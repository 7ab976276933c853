from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..models import User as UserRow

router = APIRouter(prefix="/api", tags=["auth"])
logger = logging.getLogger(__name__)

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


class User(BaseModel):
	id: int
	username: str
	email: str


class RegisterRequest(BaseModel):
	username: Optional[str] = None
	email: Optional[str] = None
	password: Optional[str] = None


class RegisterResponse(BaseModel):
	message: str
	userId: int


class LoginRequest(BaseModel):
	email: Optional[str] = None
	password: Optional[str] = None


class LoginResponse(BaseModel):
	token: str
	user: User


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=1)
	return datetime.now(timezone.utc) + delta


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	invalid_token = HTTPException(status_code=403, detail="Invalid token")
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		user_id = int(payload.get("sub"))
	except (JWTError, TypeError, ValueError):
		raise invalid_token
	row = db.get(UserRow, user_id)
	if row is None:
		raise invalid_token
	return User(id=row.id, username=row.username, email=row.email)


def _client_ip(request: Request) -> Optional[str]:
	return request.client.host if request.client else None


@router.post("/register", response_model=RegisterResponse)
def register(req: RegisterRequest, request: Request, db: Session = Depends(get_db)):
	username = (req.username or "").strip()
	email = (req.email or "").strip()
	password = req.password or ""
	client_ip = _client_ip(request)
	logger.info("register attempt username=%s email=%s ip=%s", username, email, client_ip)

	if not username or not email or not password:
		logger.warning(
			"register rejected: missing fields username=%s email=%s password=%s ip=%s",
			not username, not email, not password, client_ip,
		)
		raise HTTPException(status_code=400, detail="username, email and password are required")

	existing = db.query(UserRow).filter(or_(UserRow.username == username, UserRow.email == email)).first()
	if existing:
		reason = "Username already exists" if existing.username == username else "Email already exists"
		logger.warning("register rejected: %s username=%s email=%s existing_id=%s", reason, username, email, existing.id)
		raise HTTPException(status_code=400, detail=reason)

	row = UserRow(username=username, email=email, password_hash=hash_password(password))
	db.add(row)
	try:
		db.commit()
	except IntegrityError:
		db.rollback()
		logger.warning("register rejected: uniqueness race username=%s email=%s", username, email)
		raise HTTPException(status_code=400, detail="Username or email already exists")
	db.refresh(row)
	logger.info("register ok user_id=%s username=%s", row.id, username)
	return RegisterResponse(message="User created successfully", userId=row.id)


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, request: Request, db: Session = Depends(get_db)):
	email = (req.email or "").strip()
	password = req.password or ""
	client_ip = _client_ip(request)
	logger.info("login attempt email=%s ip=%s", email, client_ip)

	if not email or not password:
		logger.warning("login rejected: missing fields email=%s password=%s ip=%s", not email, not password, client_ip)
		raise HTTPException(status_code=400, detail="email and password are required")

	row = db.query(UserRow).filter(UserRow.email == email).first()
	if row is None:
		logger.warning("login rejected: unknown email=%s ip=%s", email, client_ip)
		raise HTTPException(status_code=401, detail="Incorrect email or password")
	if not verify_password(password, row.password_hash):
		logger.warning("login rejected: bad password user_id=%s ip=%s", row.id, client_ip)
		raise HTTPException(status_code=401, detail="Incorrect email or password")

	token = create_access_token({"sub": str(row.id), "username": row.username})
	logger.info("login ok user_id=%s ip=%s", row.id, client_ip)
	return LoginResponse(token=token, user=User(id=row.id, username=row.username, email=row.email))


@router.get("/me", response_model=User)
def me(user: User = Depends(get_current_user)):
	return user
