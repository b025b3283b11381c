from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Annotated, List, Optional, Literal, Union

DistinctivenessCategory = Literal["suggestive", "arbitrary", "fanciful"]
RiskLevel = Literal["low", "medium", "high"]
Grade = Literal["A", "B", "C", "D", "F"]
DomainSource = Literal["rdap", "godaddy", "unknown"]
FailureStep = Literal["web_search", "domain", "trademark"]
RowStatus = Literal["pending", "validating", "passed", "failed", "replacing"]


# ============ INPUT PROFILE ============

class NiceClass(BaseModel):
    class_number: int
    class_name: str = Field(default="")
    rationale: str = Field(default="")

    @field_validator('class_number', mode='before')
    @classmethod
    def convert_class_number(cls, v):
        if isinstance(v, str):
            return int(v.strip())
        return v


class PreferenceSummary(BaseModel):
    industry: str = Field(default="", description="The industry or market sector")
    target_audience: str = Field(default="", description="Target audience description")
    brand_personality: List[str] = Field(default=[], description="Brand personality attributes")
    naming_style_recommendation: str = Field(default="", description="Recommended mix of naming styles with rationale")
    avoid_patterns: List[str] = Field(default=[], description="Patterns, sounds, or styles to avoid")
    desired_tone: str = Field(default="", description="Desired emotional tone of the name")
    uspto_classes: List[NiceClass] = Field(default=[], description="Applicable trademark classes with rationale")
    key_themes: List[str] = Field(default=[], description="Key themes to explore in naming")
    summary: str = Field(default="", description="Readable summary of all preferences")

    def class_numbers(self) -> List[int]:
        return [c.class_number for c in self.uspto_classes]


class GeneratedName(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="The proposed brand name")
    rationale: str = Field(default="", description="Why this name was created")
    distinctiveness_category: DistinctivenessCategory = Field(description="Position on the Abercrombie spectrum")
    relevance_to_input: str = Field(default="", description="How the name relates to the stated preferences")
    linguistic_notes: str = Field(default="", description="Etymology, phonetics, syllable count")

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('distinctiveness_category', mode='before')
    @classmethod
    def lower_category(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


# ============ VALIDATION CONFIG ============

class CheckConfig(BaseModel):
    enabled: bool = True
    can_fail: bool = False


class DomainCheckConfig(CheckConfig):
    can_fail: bool = True
    tlds: List[str] = Field(default_factory=lambda: [".com"], description="Ordered TLDs to check, never empty")

    @field_validator('tlds', mode='after')
    @classmethod
    def normalize_tlds(cls, v):
        result = []
        for tld in v:
            tld = tld.strip().lower()
            if not tld:
                continue
            if not tld.startswith("."):
                tld = "." + tld
            if tld not in result:
                result.append(tld)
        if not result:
            raise ValueError("at least one TLD is required")
        return result


class ValidationConfig(BaseModel):
    web_search: CheckConfig = Field(default_factory=lambda: CheckConfig(enabled=True, can_fail=False))
    domain: DomainCheckConfig = Field(default_factory=DomainCheckConfig)
    trademark: CheckConfig = Field(default_factory=lambda: CheckConfig(enabled=True, can_fail=False))


# ============ CHECK RESULTS ============

class WebSearchResult(BaseModel):
    passed: bool
    score: int = Field(default=100, ge=0, le=100)
    details: str = Field(default="")
    similar_companies: List[str] = Field(default=[])
    ai_assessment: str = Field(default="")
    skipped: bool = False
    unverified: bool = Field(default=False, description="The check failed open because an upstream was unreachable")

    @field_validator('similar_companies', mode='after')
    @classmethod
    def dedupe_companies(cls, v):
        seen = []
        for company in v:
            if company and company not in seen:
                seen.append(company)
        return seen


class DomainTldResult(BaseModel):
    tld: str
    domain: str
    available: bool
    price: Optional[str] = None
    currency: Optional[str] = None
    source: DomainSource = "unknown"


class DomainResult(BaseModel):
    available: bool
    domain: str = ""
    price: Optional[str] = None
    currency: Optional[str] = None
    source: DomainSource = "unknown"
    tld_results: Optional[List[DomainTldResult]] = Field(default=None, description="Per-TLD breakdown when more than one TLD was checked")
    skipped: bool = False


class TrademarkConflict(BaseModel):
    registered_name: str
    serial_number: str = ""
    status: str = "unknown"
    similarity_score: float = Field(ge=0.0, le=1.0)
    overlapping_classes: bool = False
    class_numbers: List[int] = Field(default=[])


class TrademarkResult(BaseModel):
    passed: bool
    score: int = Field(default=100, ge=0, le=100)
    conflicts: List[TrademarkConflict] = Field(default=[])
    risk_level: RiskLevel = "low"
    skipped: bool = False
    unverified: bool = Field(default=False, description="The check failed open because an upstream was unreachable")


class ScoreBreakdown(BaseModel):
    distinctiveness: float
    conflict_risk: float
    registrability: float
    web_search: float
    trademark: float


class TrademarkabilityScore(BaseModel):
    overall: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    ai_adjustment: int = Field(default=0, ge=-10, le=10)
    grade: Grade
    report: str = ""


class ValidationResult(BaseModel):
    name: str
    web_search: WebSearchResult
    domain: DomainResult
    trademark: TrademarkResult
    trademarkability_score: TrademarkabilityScore
    overall_pass: bool = True
    has_warnings: bool = False
    failure_reason: Optional[str] = None


class PartialValidation(BaseModel):
    web_search: Optional[WebSearchResult] = None
    domain: Optional[DomainResult] = None
    trademark: Optional[TrademarkResult] = None


class ValidatedName(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated: GeneratedName
    validation: ValidationResult


class FailedName(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated: GeneratedName
    validation: PartialValidation
    failure_step: FailureStep
    failure_reason: str


class PassedOutcome(BaseModel):
    type: Literal["passed"] = "passed"
    result: ValidatedName


class FailedOutcome(BaseModel):
    type: Literal["failed"] = "failed"
    result: FailedName


ValidationOutcome = Annotated[Union[PassedOutcome, FailedOutcome], Field(discriminator="type")]


# ============ PROGRESS / RUN STATE ============

class ValidationProgress(BaseModel):
    current_name: str = ""
    current_step: str = "starting"
    total_names: int = 0
    processed_count: int = 0
    passed_count: int = 0
    failed_count: int = 0
    replacement_round: int = 0


class NameStatus(BaseModel):
    name: str
    step: str = "pending"
    status: RowStatus = "pending"
    reason: Optional[str] = None


class FailureFeedback(BaseModel):
    name: str
    reason: str


class RunResult(BaseModel):
    passed: List[ValidatedName] = Field(default=[])
    failed: List[FailedName] = Field(default=[], description="Every failure produced during the run")
    outstanding: List[FailedName] = Field(default=[], description="Failures still unresolved after the last round")
    statuses: List[NameStatus] = Field(default=[])
    rounds: int = 0
    cancelled: bool = False


# ============ LLM RESPONSE SCHEMAS ============

class WebSearchAssessment(BaseModel):
    has_conflict: bool = Field(description="Whether there is a meaningful conflict with an existing company or brand")
    assessment: str = Field(default="", description="Assessment of the search results")
    conflicting_entities: List[str] = Field(default=[], description="Names of conflicting companies or brands")

    @field_validator('conflicting_entities', mode='before')
    @classmethod
    def normalize_entities(cls, v):
        if v is None or v == '':
            return []
        if isinstance(v, str):
            return [v]
        return v


class AiScoreAdjustment(BaseModel):
    adjustment: int = Field(ge=-10, le=10, description="Score adjustment from -10 to +10")
    reasoning: str = Field(default="", description="Brief explanation of the adjustment")

    @field_validator('adjustment', mode='before')
    @classmethod
    def round_adjustment(cls, v):
        if isinstance(v, str):
            v = float(v.strip())
        if isinstance(v, float):
            return int(round(v))
        return v


class GeneratedNameBatch(BaseModel):
    names: List[GeneratedName] = Field(default=[])


# ============ API REQUESTS ============

class AnalyzeRequest(BaseModel):
    user_text: str = ""


class GenerateRequest(BaseModel):
    preference_summary: PreferenceSummary
    interview_insights: str = ""
    count: int = Field(default=10, ge=1, le=50)
    is_replacement: bool = False
    failed_names: List[FailureFeedback] = Field(default=[])
    existing_names: List[str] = Field(default=[])
    exclusion_names: List[str] = Field(default=[])


class GenerateResponse(BaseModel):
    names: List[GeneratedName]


class ValidateRequest(BaseModel):
    generated: GeneratedName
    preference_summary: PreferenceSummary
    validation_config: Optional[ValidationConfig] = None


class RunRequest(BaseModel):
    preference_summary: PreferenceSummary
    interview_insights: str = ""
    count: int = Field(default=10, ge=1, le=50)
    validation_config: Optional[ValidationConfig] = None
    exclusion_names: List[str] = Field(default=[])


class ExportRequest(BaseModel):
    names: List[ValidatedName]
    format: str = "csv"


class HealthResponse(BaseModel):
    status: str = "ok"
    llm: bool = False
    search: bool = False
    trademark: bool = False
    domain_pricing: bool = False
