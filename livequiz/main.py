from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from livequiz.api.routes import admin, auth, quizzes, root
from livequiz.api.ws import router as ws_router
from livequiz.core.config import settings
from livequiz.core.errors import QuizError
from livequiz.core.logging import configure_logging
from livequiz.db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.store_backend == "sql":
        await init_db()
    yield

app = FastAPI(title="Live Quiz", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# HTTP routes
app.include_router(root.router)
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(quizzes.router)

# WebSocket routes
app.include_router(ws_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("livequiz.main:app", host="0.0.0.0", port=8000, reload=True)
