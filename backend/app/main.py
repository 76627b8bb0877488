import logging
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from mathcore.config import SolverConfig
from mathcore.errors import (
    ConfigError, LexError, MathError, MathSyntaxError, ParseError, ValidationError,
)
from mathcore.parser import MathParser
from mathcore.solver.engine import EquationSolver
from mathcore.solver.substitution import check_solution
from mathcore.solver.system import solve_system

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="mathcore API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Value = Union[float, str]


# ── Request models ──────────────────────────────────────────────────────

class ExpressionRequest(BaseModel):
    expression: str
    config: Optional[dict[str, Any]] = None


class SolveRequest(BaseModel):
    equation: str
    variables: Optional[list[str]] = None
    bindings: dict[str, Value] = Field(default_factory=dict)
    config: Optional[dict[str, Any]] = None


class SystemRequest(BaseModel):
    equations: Union[list[str], str]
    config: Optional[dict[str, Any]] = None


class CheckRequest(BaseModel):
    equation: str
    values: dict[str, Value]
    config: Optional[dict[str, Any]] = None


# ── Response models ─────────────────────────────────────────────────────

class StepInfo(BaseModel):
    id: str
    description: str
    operation: str
    before: str
    after: str
    explanation: str


class SolutionInfo(BaseModel):
    variable: str
    value: str
    is_exact: bool
    approximation: Optional[float] = None
    conditions: list[str] = []
    multiplicity: Optional[int] = None


class DomainInfo(BaseModel):
    variable: str
    restriction: str
    description: str


class SolveResponse(BaseModel):
    solutions: list[SolutionInfo]
    steps: list[StepInfo]
    equation_type: str
    variables: list[str]
    domain_restrictions: list[DomainInfo]
    metadata: dict[str, Any]


class ErrorInfo(BaseModel):
    type: str
    message: str
    expression: str
    position: Optional[dict[str, int]] = None
    suggestions: list[str] = []


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: list[ErrorInfo]
    warnings: list[str]
    suggestions: list[str]


class ParseResponse(BaseModel):
    raw: str
    normalized: str
    ast: Optional[str]
    variables: list[str]
    functions: list[str]
    complexity: float
    validation: ValidationResponse
    steps: list[StepInfo]


class CheckResponse(BaseModel):
    holds: bool
    lhs: float
    rhs: float
    difference: float
    values: dict[str, float]
    steps: list[StepInfo]


# ── Helpers ─────────────────────────────────────────────────────────────

_CLIENT_ERRORS = (LexError, MathSyntaxError, ParseError, ValidationError)


def _config(options: Optional[dict]) -> SolverConfig:
    try:
        return SolverConfig.from_mapping(options)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration: {e}")


def _required(text: str, what: str) -> str:
    text = text.strip()
    if not text:
        raise HTTPException(status_code=400, detail=f"{what} cannot be empty.")
    return text


def _http_error(e: MathError) -> HTTPException:
    status = 400 if isinstance(e, _CLIENT_ERRORS) else 422
    return HTTPException(status_code=status, detail=e.to_dict())


# ── Routes ──────────────────────────────────────────────────────────────

@app.post("/api/parse", response_model=ParseResponse)
def parse(req: ExpressionRequest):
    expression = _required(req.expression, "Expression")
    try:
        result = MathParser(_config(req.config)).parse(expression)
    except MathError as e:
        raise _http_error(e)
    return result.to_dict()


@app.post("/api/validate", response_model=ValidationResponse)
def validate(req: ExpressionRequest):
    return MathParser(_config(req.config)).validate(req.expression).to_dict()


@app.post("/api/solve", response_model=SolveResponse)
def solve(req: SolveRequest):
    equation = _required(req.equation, "Equation")
    config = _config(req.config)
    try:
        result = EquationSolver(config).solve(equation, req.variables, req.bindings)
    except MathError as e:
        raise _http_error(e)
    except Exception as e:
        logger.exception("Solver error on %r", equation)
        raise HTTPException(status_code=500, detail=f"Solver error: {str(e)}")
    return result.to_dict()


@app.post("/api/system", response_model=SolveResponse)
def system(req: SystemRequest):
    config = _config(req.config)
    try:
        result = solve_system(req.equations, config)
    except MathError as e:
        raise _http_error(e)
    return result.to_dict()


@app.post("/api/check", response_model=CheckResponse)
def check(req: CheckRequest):
    equation = _required(req.equation, "Equation")
    config = _config(req.config)
    try:
        result = check_solution(equation, req.values, config)
    except MathError as e:
        raise _http_error(e)
    return result.to_dict()
