"""FastAPI 애플리케이션 진입점. 로깅, 미들웨어, 오류 핸들러, API 라우터를 등록합니다."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from agora.config import settings
from agora.database import Base, engine
from agora.errors import setup_exception_handlers
import agora.models  # noqa: F401 - 모델 import로 metadata 등록
from agora.routers import auth, users, communities, posts, comments

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Agora 커뮤니티 플랫폼",
    description="커뮤니티/게시글/댓글/투표/구독과 모더레이션을 제공하는 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Register all routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(communities.router)
app.include_router(posts.router)
app.include_router(comments.router)


@app.on_event("startup")
def ensure_schema():
    # 누락된 테이블을 자동 생성합니다.
    Base.metadata.create_all(bind=engine)
    logger.info("schema ready (%s)", engine.url.get_backend_name())


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Agora 커뮤니티 플랫폼"}
