from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
def healthcheck(request: Request) -> Dict[str, Any]:
    return {"status": "ok", "ai_configured": request.app.state.gateway.configured}
