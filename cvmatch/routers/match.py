from fastapi import APIRouter, Depends, Response

from cvmatch.models.match import MatchRequest, MatchResult
from cvmatch.models.settings import MatchSettings, get_settings
from cvmatch.services.session import MatchController, build_controller
from cvmatch.utils.logging_config import get_logger, log_api_call

router = APIRouter(tags=["match"])
logger = get_logger(__name__)


def get_match_controller(settings: MatchSettings = Depends(get_settings)) -> MatchController:
    """Controller wired to the configured oracle; overridden in tests"""
    return build_controller(settings)


@router.post("/cv-match", response_model=MatchResult)
@log_api_call("cv-match")
async def cv_match(
    payload: MatchRequest,
    response: Response,
    controller: MatchController = Depends(get_match_controller),
):
    """Score a CV against a job description"""
    session = controller.new_session()
    result = await session.run(payload.cv_data, payload.job_description)

    report = session.input_report
    if report is not None and report.truncated:
        response.headers["X-Job-Description-Truncated"] = "true"
        response.headers["X-Job-Description-Truncated-At"] = str(report.truncated_at)
        response.headers["X-Job-Description-Original-Length"] = str(report.original_length)

    return result
