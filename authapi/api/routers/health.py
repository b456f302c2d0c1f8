"""Health y ruta de prueba (sin auth)."""
from fastapi import APIRouter, status

from authapi.api.schemas.health import HealthOut, PingOut

router = APIRouter(tags=["Health"])  # sin prefijo para mantener paths estables


@router.get("/test", response_model=PingOut, summary="Ruta de prueba")
def hello() -> PingOut:
    return PingOut(message="Hello from test route")


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Salud básica")
def health() -> HealthOut:
    return HealthOut(ok=True)
