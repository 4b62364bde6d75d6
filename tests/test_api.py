"""HTTP surface over the rule catalog and the compiler."""

from fastapi.testclient import TestClient

from gridsmith.web.api import app

client = TestClient(app)

SUDOKU = {
    "grid": {"rows": 4, "cols": 4, "boxes": [2, 2]},
    "variables": {"numbers-all": {"min": 1, "max": 4}},
    "rules": ["sudoku-standard"],
    "clues": [{"row": 0, "col": 0, "variable": "numbers-all", "value": 2}],
}


def test_ping():
    response = client.get("/api/ping")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_rules():
    rules = client.get("/api/rules").json()
    assert len(rules) == 12
    cage = next(r for r in rules if r["id"] == "killer-cage")
    assert cage["type"] == "local"
    assert cage["capabilities"] == ["generator"]
    assert cage["requiredVariables"] == ["numbers-all"]
    assert cage["render"]["shape"] == "cage"


def test_filter_rules():
    global_rules = client.get("/api/rules", params={"type": "global"}).json()
    assert len(global_rules) == 5
    assert all(r["type"] == "global" for r in global_rules)

    dots = client.get("/api/rules", params={"category": "dots"}).json()
    assert [r["id"] for r in dots] == ["black-dot", "white-dot"]

    shading = client.get("/api/rules", params={"variables": "shading"}).json()
    assert [r["id"] for r in shading] == ["no-adjacent-shading"]


def test_categories():
    categories = client.get("/api/categories").json()
    assert categories == sorted(set(categories))
    assert "sudoku" in categories


def test_compile():
    response = client.post("/api/compile", json=SUDOKU)
    assert response.status_code == 200
    model = response.json()["model"]
    assert "% global rule: sudoku-standard" in model
    assert "constraint numbers[1, 1] = 2;" in model


def test_compile_reports_configuration_errors():
    response = client.post("/api/compile", json={**SUDOKU, "rules": ["nope"]})
    assert response.status_code == 422
    assert "Unknown rule id 'nope'" in response.json()["detail"]

    response = client.post("/api/compile", json={**SUDOKU, "variables": {}})
    assert response.status_code == 422
    assert "numbers-all" in response.json()["detail"]


def test_compile_rejects_malformed_groups():
    for groups in ([5], [{"cells": 5}], [{"cells": [[0, 0, 0]]}]):
        payload = {**SUDOKU, "constraints": [{"rule": "killer-cage", "groups": groups}]}
        response = client.post("/api/compile", json=payload)
        assert response.status_code == 422, groups
        assert "detail" in response.json()


def test_compile_rejects_reserved_variable_names():
    response = client.post(
        "/api/compile",
        json={**SUDOKU, "variables": {"regions": {"min": 1, "max": 4}}},
    )
    assert response.status_code == 422
    assert "reserved name 'regions'" in response.json()["detail"]
