from typing import List, Optional
from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from common.exceptions import BaseRegistrationException
from common.logging import get_logger, log_error
from common.responses import COMMON_RESPONSES, create_success_response, exception_response
from config.config import settings
from dependencies import RegistrationServiceDep, SupabaseConnectionDep
from services.registration_service import parse_registration_data

logger = get_logger("api.register")

router = APIRouter(prefix="/register", tags=["Registration"])
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri or "memory://",
    enabled=settings.rate_limit_enabled,
)


@router.post("",
    summary="Register a user with documents",
    description=(
        "Multipart form with a `data` JSON field (personal details, addresses, document "
        "metadata) and one `files` part per document, in the same order."
    ),
    responses={
        **COMMON_RESPONSES["invalid_request"],
        **COMMON_RESPONSES["conflict"],
        **COMMON_RESPONSES["server_error"],
    },
)
@limiter.limit(settings.register_rate_limit)
async def register_user(
    request: Request,
    connection: SupabaseConnectionDep,
    registration_service: RegistrationServiceDep,
    data: Optional[str] = Form(None, description="Registration JSON, file payloads excluded"),
    files: List[UploadFile] = File(default=[], description="Document files aligned with data.documents"),
) -> JSONResponse:
    try:
        connection.connect()

        registration = parse_registration_data(data)
        user = await registration_service.register(registration, files)

        return create_success_response(
            data=user.to_dict(),
            message="User registered successfully",
        )
    except BaseRegistrationException as e:
        if e.status_code >= 500:
            log_error(e, context={"path": str(request.url.path)})
        else:
            logger.info(f"Registration rejected ({e.status_code}): {e.detail}")
        return exception_response(e)
    except Exception as e:
        log_error(e, context={"path": str(request.url.path)})
        return exception_response(e)
