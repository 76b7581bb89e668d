from fastapi import APIRouter

from dependencies import SupabaseConnectionDep, UserRepositoryDep

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/db",
    summary="Database connectivity check",
    description="Check if the application can connect to the database"
)
async def check_db(connection: SupabaseConnectionDep, user_repo: UserRepositoryDep):
    connection.connect()
    data = await user_repo.ping()
    return {"status": "ok", "result": data}


@router.get("/status",
    summary="Application health status",
    description="Basic health check endpoint"
)
def health_status():
    return {"status": "healthy", "service": "User Registration API", "version": "1.0.0"}
