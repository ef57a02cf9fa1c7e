from fastapi.testclient import TestClient

from hivelang.config import EngineConfig
from hivelang.memory.store import SessionMemoryStore
from hivelang.observability.metrics import MetricsRegistry
from hivelang.server import create_app
from hivelang.version import LANGUAGE_VERSION, __version__

from stubs import DEMO_TOOLS


PROGRAM_TEXT = (
    "bot Greeter\n"
    "  memory session\n"
    "    var visits: number\n"
    "  end\n"
    "  on input when input contains \"hello\"\n"
    "    call demo.greet with { name: input.name } as reply\n"
    "    say reply.output\n"
    "  end\n"
    "  on input\n"
    '    set $visits = 1\n'
    '    say "visits={visits}"\n'
    "  end\n"
    "end\n"
)


def _client(**kwargs):
    return TestClient(create_app(tools=DEMO_TOOLS, **kwargs))


def test_health():
    response = _client().get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__, "language_version": LANGUAGE_VERSION}


def test_parse_endpoint():
    client = _client()
    response = client.post("/api/parse", json={"source": PROGRAM_TEXT})
    assert response.status_code == 200
    assert response.json()["ast"]["bots"][0]["name"] == "Greeter"

    bad = client.post("/api/parse", json={"source": "bot Broken\n  on input\n"})
    assert bad.status_code == 400
    detail = bad.json()["detail"]
    assert detail["kind"] == "ParseError"
    assert detail["line"] == 3


def test_validate_endpoint():
    client = _client()
    source = "bot B\n  on input\n    call crm.lookup with {}\n  end\nend\n"
    report = client.post("/api/validate", json={"source": source}).json()
    assert report["valid"] is True
    assert [diag["code"] for diag in report["warnings"]] == ["HL-1001"]
    extended = client.post("/api/validate", json={"source": source, "tool_names": ["crm.lookup"]}).json()
    assert extended["warnings"] == []


def test_execute_endpoint():
    response = _client().post(
        "/api/execute", json={"source": PROGRAM_TEXT, "input": {"input": "hello", "name": "Ada"}}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["output"] == "hello Ada"
    assert [step["kind"] for step in body["steps"]] == ["call", "say"]


def test_execute_failure_is_a_payload_not_an_http_error():
    response = _client().post("/api/execute", json={"source": "bot B\n  on input\n", "input": "hi"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["error_kind"] == "ParseError"
    assert body["steps"] == []


def test_execute_rejects_bad_timeout():
    response = _client().post("/api/execute", json={"source": PROGRAM_TEXT, "timeout_seconds": 0})
    assert response.status_code == 422


def test_sessions_keep_their_own_memory():
    store = SessionMemoryStore()
    client = _client(memory_store=store)
    client.post("/api/execute", json={"source": PROGRAM_TEXT, "input": "hi", "session_id": "s1"})
    assert store.for_session("s1").snapshot() == {"session:session-s1:visits": 1}
    assert store.for_session("s2").snapshot() == {}


def test_metrics_endpoint():
    metrics = MetricsRegistry()
    client = _client(metrics=metrics, config=EngineConfig())
    client.post("/api/execute", json={"source": PROGRAM_TEXT, "input": "hi"})
    payload = client.get("/api/metrics").json()
    assert payload["runs"]["Greeter"]["total_runs"] == 1
    assert payload["steps"]["say"]["count"] == 1


def test_session_routes():
    store = SessionMemoryStore(max_sessions=4)
    client = _client(memory_store=store)
    client.post("/api/execute", json={"source": PROGRAM_TEXT, "input": "hi", "session_id": "s1"})

    listing = client.get("/api/sessions").json()
    assert listing == {"sessions": ["s1"], "max_sessions": 4}
    memory = client.get("/api/sessions/s1/memory").json()
    assert memory == {"session_id": "s1", "memory": {"session:session-s1:visits": 1}}

    assert client.post("/api/sessions/s1/clear").json() == {"session_id": "s1", "cleared": True}
    assert client.get("/api/sessions").json()["sessions"] == []
    assert client.post("/api/sessions/s1/clear").status_code == 404
    assert client.get("/api/sessions/missing/memory").status_code == 404
