import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException

from repomap.config import MODES, Settings
from repomap.errors import ApiKeyNotFoundError, PipelineError
from repomap.inference.config import get_llm_client
from repomap.pipeline.controller import PipelineController
from repomap.schemas import GenerateRequest, GenerateResponse
from repomap.source.repomix import line_count_map, parse_line_counts

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="",
    tags=["repomap"],
)

ControllerFactory = Callable[[Optional[str]], PipelineController]


def get_controller_factory() -> ControllerFactory:
    def factory(mode: Optional[str]) -> PipelineController:
        try:
            settings = Settings.from_env()
        except ApiKeyNotFoundError as e:
            raise HTTPException(status_code=500, detail=str(e)) from e
        return PipelineController(get_llm_client(settings), mode=mode or settings.mode)

    return factory


@router.post("/generate", response_model=GenerateResponse)
def generate(
    req: GenerateRequest,
    controller_factory: ControllerFactory = Depends(get_controller_factory),
):
    if req.mode is not None and req.mode not in MODES:
        raise HTTPException(status_code=422, detail=f"mode must be one of {', '.join(MODES)}")

    controller = controller_factory(req.mode)
    line_counts = line_count_map(parse_line_counts(req.xml))

    try:
        context = controller.run(
            req.xml,
            line_counts,
            feature_request=req.feature_request,
        )
    except PipelineError as e:
        logger.error("[API] base diagram failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e

    return GenerateResponse(
        status="warning" if context.errors else "success",
        diagram=context.base_diagram,
        changes=context.proposal.to_document() if context.proposal else None,
        updated_diagram=context.updated_diagram,
        warnings=context.errors,
    )
