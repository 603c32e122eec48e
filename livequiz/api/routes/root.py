from fastapi import APIRouter, Depends

from livequiz.dependencies import get_runtime
from livequiz.services.runtime import QuizRuntime

router = APIRouter()


@router.get("/health")
async def health(runtime: QuizRuntime = Depends(get_runtime)):
    return {
        "status": "ok",
        "connections": runtime.broadcaster.connection_count(),
        "rooms": runtime.broadcaster.rooms(),
    }
