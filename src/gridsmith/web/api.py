from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from gridsmith.errors import GeneratorFailure, GridsmithError
from gridsmith.io.puzzle import puzzle_from_mapping
from gridsmith.model.build import compile_puzzle
from gridsmith.rules.base import Rule
from gridsmith.rules.registry import RuleRegistry

REGISTRY = RuleRegistry.load()

app = FastAPI(title="gridsmith")


def rule_summary(rule: Rule) -> Dict[str, Any]:
    return {
        "id": rule.id,
        "name": rule.name,
        "type": rule.type,
        "description": rule.description,
        "requiredVariables": list(rule.required_variables),
        "categories": list(rule.categories),
        "capabilities": list(rule.capabilities),
        "render": rule.render,
    }


@app.get("/api/ping")
def ping() -> JSONResponse:
    """Simple health check endpoint."""
    return JSONResponse({"status": "ok"})


@app.get("/api/rules")
def list_rules(
    type: Optional[str] = None,
    category: Optional[str] = None,
    variables: Optional[List[str]] = Query(default=None),
) -> List[Dict[str, Any]]:
    """Catalog listing, optionally filtered by type, category and available variable kinds."""
    rules = list(REGISTRY.rules)
    if type is not None:
        rules = [r for r in rules if r.type == type]
    if category is not None:
        rules = [r for r in rules if category in r.categories]
    if variables is not None:
        rules = [r for r in rules if r.compatible_with(variables)]
    return [rule_summary(r) for r in rules]


@app.get("/api/categories")
def list_categories() -> List[str]:
    return REGISTRY.categories()


@app.post("/api/compile")
def compile_model(payload: Dict[str, Any] = Body(...)) -> Dict[str, str]:
    """Compile a puzzle description (same shape as the YAML files) to MiniZinc."""
    try:
        puzzle = puzzle_from_mapping(payload, REGISTRY)
        model = compile_puzzle(puzzle=puzzle, registry=REGISTRY)
    except GeneratorFailure as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    except GridsmithError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {"model": model}
