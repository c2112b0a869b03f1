"""Column mapping generation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from reportmap.models.mapping import GenerateMappingRequest, GenerateMappingResponse
from reportmap.services.mapping_service import MappingService

router = APIRouter(tags=["mapping"])


def get_mapping_service(request: Request) -> MappingService:
    return request.app.state.mapping_service


@router.post("/generate", response_model=GenerateMappingResponse)
def generate_mapping(
    body: GenerateMappingRequest,
    service: MappingService = Depends(get_mapping_service),
) -> GenerateMappingResponse:
    """Propose template-to-data column mappings with confidence scores."""
    mappings = service.generate_mapping(body.template_columns, body.data_columns, body.command)
    return GenerateMappingResponse(mappings=[m.to_json() for m in mappings])
