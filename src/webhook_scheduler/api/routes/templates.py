"""Template endpoints."""

from fastapi import APIRouter, Depends, Response, status

from ..dependencies import get_template_service, raise_for_result
from ..schemas import (
    TemplateCreateRequest,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdateRequest,
)
from ...constants import ERR_TEMPLATE_NOT_FOUND
from ...domain.models import ErrorCode, OperationResult
from ...services import TemplateService

router = APIRouter()


@router.get(
    "/templates",
    response_model=TemplateListResponse,
    summary="List templates",
)
async def list_templates(
    service: TemplateService = Depends(get_template_service),
) -> TemplateListResponse:
    templates = service.list_templates()
    return TemplateListResponse(
        templates=[TemplateResponse.from_record(t) for t in templates],
        total=len(templates),
    )


@router.post(
    "/templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a template",
)
async def create_template(
    request: TemplateCreateRequest,
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    result = service.create_template(**request.model_dump())
    if not result.success:
        raise_for_result(result)
    return TemplateResponse.from_record(result.value)


@router.get(
    "/templates/{template_id}",
    response_model=TemplateResponse,
    summary="Get a template",
)
async def get_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    template = service.get_template(template_id)
    if template is None:
        raise_for_result(OperationResult.fail(ErrorCode.TEMPLATE_NOT_FOUND, ERR_TEMPLATE_NOT_FOUND))
    return TemplateResponse.from_record(template)


@router.patch(
    "/templates/{template_id}",
    response_model=TemplateResponse,
    summary="Update a template",
    description="Partial update; schedules created from the template are not affected",
)
async def update_template(
    template_id: str,
    request: TemplateUpdateRequest,
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    result = service.update_template(template_id, **request.model_dump(exclude_unset=True))
    if not result.success:
        raise_for_result(result)
    return TemplateResponse.from_record(result.value)


@router.delete(
    "/templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a template",
)
async def delete_template(
    template_id: str,
    service: TemplateService = Depends(get_template_service),
) -> Response:
    result = service.delete_template(template_id)
    if not result.success:
        raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
