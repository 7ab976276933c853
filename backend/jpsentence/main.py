import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import engine, init_db
from .logging_config import setup_logging
from .scoring import InvalidArgument
from .settings import settings
from .routers import health
from .routers import auth
from .routers import users
from .routers import sentences
from .routers import study

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	setup_logging()
	# Initialize DB schema
	init_db()
	logger.info(
		"server started database=%s debug_endpoints=%s",
		engine.url.render_as_string(hide_password=True), settings.debug_endpoints,
	)
	yield
	logger.info("server stopped")


app = FastAPI(title="JP Sentence API", lifespan=lifespan)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(sentences.router)
app.include_router(study.router)
if settings.debug_endpoints:
	app.include_router(users.debug_router)

app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
	started = time.perf_counter()
	try:
		response = await call_next(request)
	except Exception:
		logger.exception("%s %s failed", request.method, request.url.path)
		raise
	duration_ms = (time.perf_counter() - started) * 1000
	logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, duration_ms)
	return response


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
	return JSONResponse(status_code=400, content={"detail": str(exc)})
