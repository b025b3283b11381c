from fastapi import FastAPI, APIRouter, Depends, HTTPException, Response
from starlette.middleware.cors import CORSMiddleware
import logging
from functools import lru_cache

from .availability import DomainChecker, GoDaddyInventory, RdapRegistry
from .config import Settings, get_settings
from .errors import GenerationError
from .export import generate_csv, rank_validated_names
from .generator import NameGenerator
from .llm import AnthropicLLM
from .pipeline import ValidationPipeline
from .replacement import GenerationRun
from .schemas import (
    AnalyzeRequest,
    ExportRequest,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    PreferenceSummary,
    RunRequest,
    RunResult,
    ValidateRequest,
    ValidationOutcome,
)
from .scoring import TrademarkabilityScorer
from .trademark_research import RapidApiTrademarkProvider, TrademarkChecker
from .visibility import SerperSearchProvider, WebPresenceChecker

settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)


class Services:
    """Long-lived upstream clients shared by every request."""

    def __init__(self, settings: Settings):
        self.llm = AnthropicLLM(settings)
        self.search = SerperSearchProvider(settings=settings)
        self.registry = RdapRegistry(settings=settings)
        self.inventory = GoDaddyInventory(settings=settings)
        self.trademarks = RapidApiTrademarkProvider(settings=settings)

        self.generator = NameGenerator(self.llm)
        self.pipeline = ValidationPipeline(
            WebPresenceChecker(self.search, self.llm),
            DomainChecker(self.registry, self.inventory),
            TrademarkChecker(self.trademarks),
            TrademarkabilityScorer(self.llm),
        )

    async def aclose(self) -> None:
        for closable in (self.llm, self.search, self.registry, self.inventory, self.trademarks):
            await closable.aclose()


@lru_cache(maxsize=1)
def get_services() -> Services:
    return Services(get_settings())


def get_generator() -> NameGenerator:
    return get_services().generator


def get_pipeline() -> ValidationPipeline:
    return get_services().pipeline


# Create the main app
app = FastAPI(title="brandclear")

# Router
api_router = APIRouter(prefix="/api")


@api_router.get("/health", response_model=HealthResponse)
async def health_check(current: Settings = Depends(get_settings)):
    return HealthResponse(
        status="ok",
        llm=current.has_llm,
        search=current.has_search,
        trademark=current.has_trademark_search,
        domain_pricing=current.has_domain_pricing,
    )


@api_router.post("/analyze", response_model=PreferenceSummary)
async def analyze_brief(request: AnalyzeRequest, generator: NameGenerator = Depends(get_generator)):
    if not request.user_text.strip():
        raise HTTPException(status_code=400, detail="user_text must not be empty")
    try:
        return await generator.analyze(request.user_text)
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to analyze input")


@api_router.post("/generate", response_model=GenerateResponse)
async def generate_names(request: GenerateRequest, generator: NameGenerator = Depends(get_generator)):
    excluded = request.existing_names + [n for n in request.exclusion_names if n not in request.existing_names]
    try:
        names = await generator.generate(
            request.preference_summary,
            request.interview_insights,
            request.count,
            is_replacement=request.is_replacement,
            failed_feedback=request.failed_names,
            excluded_names=excluded,
        )
    except Exception as e:
        logger.error(f"Generation error: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate names")
    return GenerateResponse(names=names)


@api_router.post("/validate", response_model=ValidationOutcome)
async def validate_name(request: ValidateRequest, pipeline: ValidationPipeline = Depends(get_pipeline)):
    return await pipeline.validate(
        request.generated,
        request.preference_summary.class_numbers(),
        request.preference_summary.industry,
        request.validation_config,
    )


@api_router.post("/runs", response_model=RunResult)
async def create_run(
    request: RunRequest,
    generator: NameGenerator = Depends(get_generator),
    pipeline: ValidationPipeline = Depends(get_pipeline),
    current: Settings = Depends(get_settings),
):
    run = GenerationRun(
        generator,
        pipeline,
        request.preference_summary,
        insights=request.interview_insights,
        config=request.validation_config,
        exclusion_names=request.exclusion_names,
        max_rounds=current.max_replacement_rounds,
    )
    try:
        return await run.run(request.count)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))


@api_router.post("/export")
async def export_names(request: ExportRequest):
    if request.format.lower() != "csv":
        raise HTTPException(status_code=400, detail=f"Unsupported export format: {request.format}")
    content = generate_csv(rank_validated_names(request.names))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="brand-names.csv"'},
    )


app.include_router(api_router)

# Get CORS origins - handle both wildcard and specific origins
if settings.cors_origins == '*':
    cors_origins = ["*"]
    allow_credentials = False  # Can't use credentials with wildcard
else:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(',')]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_credentials=allow_credentials,
    allow_origins=cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("shutdown")
async def shutdown_clients():
    if get_services.cache_info().currsize:
        await get_services().aclose()
        get_services.cache_clear()
