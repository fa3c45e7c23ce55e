"""Tests for the HTTP API."""

from fastapi.testclient import TestClient


def test_health_check(client: TestClient) -> None:
    """Test the health endpoint."""
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "default_target" in data["components"]


def test_analyze_endpoint(client: TestClient) -> None:
    """Test prompt analysis over HTTP."""
    response = client.post("/analyze", json={"prompt": "make it better"})

    assert response.status_code == 200
    data = response.json()
    assert data["task_type"] == "other"
    assert [q["id"] for q in data["blocking_questions"]] == ["q_vague_objective"]


def test_empty_prompt_rejected(client: TestClient) -> None:
    """Test request validation."""
    assert client.post("/analyze", json={"prompt": ""}).status_code == 422


def test_score_endpoint(client: TestClient) -> None:
    """Test the score endpoint shape."""
    data = client.post("/score", json={"prompt": "make it better"}).json()

    assert data["quality"]["total"] == 43
    assert data["risk_score"]["score"] == 23
    assert data["risk_level"] == "low"


def test_compile_endpoint(client: TestClient) -> None:
    """Test compilation for a chosen target."""
    response = client.post(
        "/compile",
        json={"prompt": "Fix the null pointer crash in src/api/handler.ts", "target": "openai"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["compiled"]["text"].startswith("[SYSTEM]")
    assert data["checklist"]["summary"] == "7/9 sections present"
    assert data["blocking_questions"] == []


def test_compile_rejects_unknown_target(client: TestClient) -> None:
    """Test target validation."""
    response = client.post("/compile", json={"prompt": "hi there", "target": "gemini"})
    assert response.status_code == 422


def test_optimize_endpoint(client: TestClient) -> None:
    """Test the full optimize flow."""
    data = client.post("/optimize", json={"prompt": "what is a closure?"}).json()

    assert data["intent"]["task_type"] == "question"
    assert data["cost"]["recommended_model"] == "haiku"
    assert data["quality_after"]["total"] >= data["quality_before"]["total"]


def test_compress_endpoint(client: TestClient) -> None:
    """Test compression over HTTP."""
    line = "console.log('processing record from upstream queue');"
    data = client.post("/compress", json={"context": "\n".join([line] * 3)}).json()

    assert data["compressed"] == f"{line}\n... (2 duplicate lines removed)"
    assert data["compressed_tokens"] < data["original_tokens"]


def test_tools_rank_and_prune(client: TestClient) -> None:
    """Test tool ranking and pruning."""
    tools = [
        {"name": "bash", "description": "Run shell commands in a terminal"},
        {"name": "lint", "description": "Lint"},
        {"name": "grep", "description": "Search files"},
    ]
    prompt = "fix the crash in src/app.py"

    ranked = client.post("/tools/rank", json={"tools": tools, "prompt": prompt}).json()
    assert ranked["tools"][0]["name"] == "bash"

    pruned = client.post(
        "/tools/prune", json={"tools": tools, "prompt": prompt, "prune_count": 1}
    ).json()
    assert pruned["pruned_count"] == 1
    assert "bash" not in pruned["pruned_tools"]

    bad = client.post("/tools/prune", json={"tools": tools, "prune_count": -1})
    assert bad.status_code == 422
