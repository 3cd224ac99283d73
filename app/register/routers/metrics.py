from fastapi import APIRouter, Depends, Response

from app.register.core.metrics import metrics
from app.register.db.session import get_db
from app.register.repos.register_sessions import RegisterSessionRepository

router = APIRouter()


@router.get("/register/ops/metrics")
def get_metrics(db=Depends(get_db)):
    metrics.set_register_open(RegisterSessionRepository(db).get_open() is not None)
    snapshot = metrics.render()
    return Response(content=snapshot.content, media_type=snapshot.content_type, headers={"Cache-Control": "no-store"})
