"""FastAPI dependencies for course structure."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import StructureService


async def get_structure_service(request: Request) -> StructureService:
    """Get structure service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "structure_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Structure service not available",
        )
    return app_state.structure_service


StructureServiceDep = Annotated[StructureService, Depends(get_structure_service)]
