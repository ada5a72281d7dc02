"""Wire-level integration tests for the MCP transport contract."""

from __future__ import annotations

import json
import subprocess
import sys

_INITIALIZE = [
    {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-11-25",
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "0"},
        },
    },
    {"jsonrpc": "2.0", "method": "notifications/initialized"},
]


def _tool_call(name: str, arguments: dict) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


def _run_mcp_exchange(env: dict[str, str], messages: list[dict]) -> list[dict]:
    proc = subprocess.Popen(
        [sys.executable, "-m", "docshelf.server"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
    )

    assert proc.stdin is not None
    assert proc.stdout is not None
    assert proc.stderr is not None

    for message in messages:
        proc.stdin.write(json.dumps(message) + "\n")
    proc.stdin.flush()

    # Read until every request ID has been answered before closing stdin;
    # closing early tears down the stdio transport and drops in-flight responses.
    expected_ids = frozenset(msg["id"] for msg in messages if "id" in msg)
    responses: list[dict] = []
    seen_ids: set = set()
    while seen_ids < expected_ids:
        line = proc.stdout.readline()
        if not line:  # server exited before answering all requests
            break
        stripped = line.strip()
        if stripped:
            resp = json.loads(stripped)
            responses.append(resp)
            rid = resp.get("id")
            if rid is not None:
                seen_ids.add(rid)

    proc.stdin.close()
    proc.stderr.read()  # drain for reliable process shutdown
    proc.wait(timeout=10)
    proc.stdout.close()
    proc.stderr.close()

    return responses


def _response(responses: list[dict], rid: int) -> dict:
    return next(response for response in responses if response.get("id") == rid)


def test_initialize_and_tools_list_contract(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env,
        [*_INITIALIZE, {"jsonrpc": "2.0", "id": 2, "method": "tools/list", "params": {}}],
    )

    init_result = _response(responses, 1)["result"]
    assert init_result["serverInfo"]["name"] == "docshelf"
    assert "tools" in init_result["capabilities"]

    tools = _response(responses, 2)["result"]["tools"]
    tools_by_name = {tool["name"]: tool for tool in tools}
    assert set(tools_by_name) == {"search_docs", "get_doc", "get_doc_pages", "get_doc_section"}

    search_schema = tools_by_name["search_docs"]["inputSchema"]
    assert search_schema["required"] == ["query"]

    get_doc_schema = tools_by_name["get_doc"]["inputSchema"]
    assert "document_id" in get_doc_schema["required"]
    assert get_doc_schema["properties"]["page"]["type"] == "integer"

    pages_schema = tools_by_name["get_doc_pages"]["inputSchema"]
    assert set(pages_schema["required"]) == {"document_id", "start_page"}

    section_schema = tools_by_name["get_doc_section"]["inputSchema"]
    assert set(section_schema["required"]) == {"document_id", "heading"}


def test_search_docs_wire_success(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env, [*_INITIALIZE, _tool_call("search_docs", {"query": "bundler"})]
    )

    tool_response = _response(responses, 2)
    assert tool_response["result"]["isError"] is False

    payload = json.loads(tool_response["result"]["content"][0]["text"])
    assert payload == {"corpus": "bun", "results": []}


def test_get_doc_wire_error_envelope(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env, [*_INITIALIZE, _tool_call("get_doc", {"document_id": 0})]
    )

    tool_response = _response(responses, 2)
    assert tool_response["result"]["isError"] is True

    payload = json.loads(tool_response["result"]["content"][0]["text"])
    assert payload["error"]["code"] == "DOCUMENT_NOT_FOUND"
    assert payload["error"]["recoverable"] is False


def test_unknown_corpus_wire_error_envelope(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env,
        [*_INITIALIZE, _tool_call("search_docs", {"query": "serve", "corpus": "deno"})],
    )

    tool_response = _response(responses, 2)
    assert tool_response["result"]["isError"] is True

    payload = json.loads(tool_response["result"]["content"][0]["text"])
    assert payload["error"]["code"] == "CORPUS_NOT_FOUND"
    assert "bun" in payload["error"]["suggestion"]
