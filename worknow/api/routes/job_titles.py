from fastapi import APIRouter, Depends

from worknow.core.auth import verify_api_key
from worknow.core.dependencies import CacheServices, get_services
from worknow.schemas.job_title import JobTitleRequest, JobTitleResponse

router = APIRouter(tags=["Jobs"])


@router.post(
    "/job-titles",
    response_model=JobTitleResponse,
    dependencies=[Depends(verify_api_key)],
)
async def generate_job_title(
    payload: JobTitleRequest,
    services: CacheServices = Depends(get_services),
) -> JobTitleResponse:
    """Suggest a concise Russian title for a job description.

    Uses the configured LLM and falls back to keyword rules when the model is
    unavailable, so this endpoint does not fail because of the provider.

    Args:
        payload: Description plus optional city, salary and requirements.

    Returns:
        JobTitleResponse with title, confidence, method and analysis flags.
    """
    return await services.job_titles.generate(
        payload.description,
        city=payload.city,
        salary=payload.salary,
        requirements=payload.requirements,
    )
