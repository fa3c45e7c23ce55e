"""HTTP endpoints; each handler is a thin wrapper over the pure core."""

from typing import Any, List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from prompt_optimizer import __version__
from prompt_optimizer.compiler.compress import compress_context
from prompt_optimizer.compiler.render import compile_prompt
from prompt_optimizer.config import settings
from prompt_optimizer.intent.analyzer import analyze
from prompt_optimizer.intent.custom_rules import CustomRule, CustomRuleError, load_custom_rules
from prompt_optimizer.logging import get_logger
from prompt_optimizer.pipeline import optimize, to_dict
from prompt_optimizer.pruner import prune_mode, rank_mode
from prompt_optimizer.scoring.checklist import generate_checklist
from prompt_optimizer.scoring.quality import score_quality
from prompt_optimizer.types import CompressionConfig, ToolDefinition

logger = get_logger(__name__)

router = APIRouter()

Target = Literal["claude", "openai", "generic"]


class PromptRequest(BaseModel):
    """Request model for endpoints that analyze a raw prompt."""

    prompt: str = Field(..., min_length=1)
    context: Optional[str] = None
    answered_question_ids: List[str] = []


class CompileRequest(PromptRequest):
    target: Target = settings.DEFAULT_TARGET


class CompressRequest(BaseModel):
    context: str
    intent: str = ""
    mode: Literal["standard", "aggressive"] = settings.COMPRESSION_MODE
    token_budget: int = Field(settings.COMPRESSION_TOKEN_BUDGET, ge=0)
    preserve_patterns: List[str] = []
    enable_stub_collapse: bool = False


class Tool(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""


class ToolsRequest(BaseModel):
    tools: List[Tool]
    prompt: Optional[str] = None
    prune_count: int = Field(settings.PRUNE_COUNT, ge=0)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    version: str
    components: dict[str, str]


def _custom_rules() -> list[CustomRule]:
    try:
        return load_custom_rules()
    except CustomRuleError as e:
        logger.error(f"Failed to load custom rules: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        components={
            "default_target": settings.DEFAULT_TARGET,
            "compression_mode": settings.COMPRESSION_MODE,
        },
    )


@router.post("/analyze")
async def analyze_endpoint(request: PromptRequest) -> dict[str, Any]:
    spec = analyze(
        request.prompt, request.context, request.answered_question_ids, _custom_rules()
    )
    return to_dict(spec)


@router.post("/score")
async def score_endpoint(request: PromptRequest) -> dict[str, Any]:
    spec = analyze(
        request.prompt, request.context, request.answered_question_ids, _custom_rules()
    )
    return {
        "task_type": spec.task_type,
        "risk_level": spec.risk_level,
        "risk_score": to_dict(spec.risk_score),
        "quality": to_dict(score_quality(spec, request.context)),
    }


@router.post("/compile")
async def compile_endpoint(request: CompileRequest) -> dict[str, Any]:
    spec = analyze(
        request.prompt, request.context, request.answered_question_ids, _custom_rules()
    )
    compiled = compile_prompt(spec, request.context, request.target)
    return {
        "compiled": to_dict(compiled),
        "checklist": to_dict(generate_checklist(compiled.text)),
        "blocking_questions": to_dict(spec.blocking_questions),
    }


@router.post("/optimize")
async def optimize_endpoint(request: CompileRequest) -> dict[str, Any]:
    result = optimize(
        request.prompt,
        request.context,
        request.target,
        request.answered_question_ids,
        _custom_rules(),
    )
    return to_dict(result)


@router.post("/compress")
async def compress_endpoint(request: CompressRequest) -> dict[str, Any]:
    config = CompressionConfig(
        mode=request.mode,
        token_budget=request.token_budget,
        preserve_patterns=list(request.preserve_patterns),
        enable_stub_collapse=request.enable_stub_collapse,
    )
    return to_dict(compress_context(request.context, request.intent, config))


def _tool_definitions(request: ToolsRequest) -> list[ToolDefinition]:
    return [ToolDefinition(name=t.name, description=t.description) for t in request.tools]


@router.post("/tools/rank")
async def rank_tools_endpoint(request: ToolsRequest) -> dict[str, Any]:
    spec = analyze(request.prompt) if request.prompt else None
    return to_dict(rank_mode(_tool_definitions(request), spec))


@router.post("/tools/prune")
async def prune_tools_endpoint(request: ToolsRequest) -> dict[str, Any]:
    spec = analyze(request.prompt) if request.prompt else None
    return to_dict(
        prune_mode(_tool_definitions(request), spec, request.prompt, request.prune_count)
    )
