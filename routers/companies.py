from fastapi import APIRouter, Depends, Request

from models import CompanyRecord, ErrorResponse
from services.lookup import CompanyLookupService

router = APIRouter(prefix="/api/company", tags=["companies"])


def get_lookup_service(request: Request) -> CompanyLookupService:
    return CompanyLookupService(request.app.state.store)


@router.get(
    "/{company_name:path}",
    response_model=CompanyRecord,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def get_company(company_name: str, service: CompanyLookupService = Depends(get_lookup_service)):
    """
    Get the enriched record for a company by name.

    The name does not have to match exactly: "Acme Inc" finds a record
    stored as "Acme" and "Acme" finds "Acme Technologies".
    """
    return await service.get_company(company_name)
