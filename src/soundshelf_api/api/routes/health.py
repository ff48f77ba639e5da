from fastapi import APIRouter

from soundshelf_api.api.deps import RepositoryDep
from soundshelf_api.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", tags=["health"])
def health_check(repository: RepositoryDep) -> HealthResponse:
    return HealthResponse(status="healthy", songs=repository.count())
