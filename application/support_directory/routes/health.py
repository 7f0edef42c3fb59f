from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from support_directory.connections.database import check_database

from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

from support_directory.logging.utils import get_app_logger
logger = get_app_logger('routes.health')

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    try:
        database = "ok" if check_database() else "unavailable"
    except SQLAlchemyError as e:
        logger.error(f"health_database_error | error={e}")
        database = "unavailable"

    details = {
        "status": "healthy" if database == "ok" else "degraded",
        "version": configs.APP_VERSION,
        "service": configs.APP_NAME,
        "database": database,
        "otpStrategy": request.app.state.otp_verifier.strategy.name,
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=details)
