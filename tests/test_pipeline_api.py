"""Pipeline, summary and folder API integration tests."""

import pytest

SNAPSHOT = {
    "workspaceId": "ws",
    "edges": [{"id": "e1", "sourceNodeId": 1, "targetNodeId": 2, "autoChain": True}],
    "panels": [
        {"nodeId": 1, "panelType": "text", "title": "Notes", "staticOutput": "hello"},
        {"nodeId": 2, "panelType": "ai", "agentId": "translator", "prompt": "Translate"},
    ],
}


class TestRunPipeline:
    @pytest.mark.asyncio
    async def test_run_returns_final_state(self, client, api_container):
        resp = await client.post("/pipeline/runs", json={"snapshot": SNAPSHOT, "runId": "r1"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["runId"] == "r1"
        assert data["status"] == "completed"
        assert data["order"] == [1, 2]
        assert data["outputs"] == {"1": "hello", "2": "ok"}
        assert [e["status"] for e in data["timeline"]] == ["running", "completed", "running", "completed"]
        assert "--- Panel #1 (Text Widget) output ---\nhello\n--- End ---" in api_container.agent_invoker.prompts[0]

    @pytest.mark.asyncio
    async def test_cycle_fails_run(self, client):
        snapshot = {
            "edges": [
                {"id": "a", "sourceNodeId": 1, "targetNodeId": 2},
                {"id": "b", "sourceNodeId": 2, "targetNodeId": 1},
            ]
        }
        resp = await client.post("/pipeline/runs", json={"snapshot": snapshot})

        data = resp.json()
        assert data["status"] == "failed"
        assert data["error"] == "Cycle detected: pipeline cannot run."

    @pytest.mark.asyncio
    async def test_invalid_body(self, client):
        resp = await client.post("/pipeline/runs", json={"snapshot": {"edges": [{"id": "e"}]}})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_stop_unknown_run(self, client):
        resp = await client.post("/pipeline/runs/nope/stop")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_active_run_id_conflicts(self, client, api_container, make_invoker):
        nested = []

        class NestedRunInvoker(make_invoker):
            async def invoke(self, agent_id, prompt):
                if not nested:
                    body = {"snapshot": SNAPSHOT, "runId": "r1"}
                    nested.append(await client.post("/pipeline/runs", json=body))
                    nested.append(await client.post("/pipeline/runs?stream=true", json=body))
                return await super().invoke(agent_id, prompt)

        api_container.agent_invoker = NestedRunInvoker()

        resp = await client.post("/pipeline/runs", json={"snapshot": SNAPSHOT, "runId": "r1"})

        assert [r.status_code for r in nested] == [409, 409]
        assert nested[0].json()["detail"] == "Run already active: r1"
        assert resp.status_code == 200
        assert resp.json()["status"] == "completed"


class TestNodeCompleted:
    @pytest.mark.asyncio
    async def test_triggers_auto_chain(self, client, api_container):
        resp = await client.post(
            "/pipeline/nodes/1/completed",
            json={"snapshot": SNAPSHOT, "output": "bonjour"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["nodeId"] == 1
        assert data["triggered"] == [
            {"targetNodeId": 2, "success": True, "output": "ok", "error": None}
        ]
        assert "bonjour" in api_container.agent_invoker.prompts[0]


class TestOutputs:
    @pytest.mark.asyncio
    async def test_list_and_clear(self, client, api_container):
        api_container.output_store.set(1, "a")
        api_container.output_store.set(2, "b")

        assert (await client.get("/pipeline/outputs")).json() == {"1": "a", "2": "b"}

        resp = await client.delete("/pipeline/outputs", params={"node_id": 1})
        assert resp.json() == {"cleared": True, "node_id": 1}
        assert (await client.get("/pipeline/outputs")).json() == {"2": "b"}

        await client.delete("/pipeline/outputs")
        assert (await client.get("/pipeline/outputs")).json() == {}


class TestSummaries:
    @pytest.mark.asyncio
    async def test_summarize_then_clear(self, client, api_container):
        body = {
            "agent_id": "summarizer",
            "workspace_id": "ws",
            "source_node_id": 3,
            "folder_path": "/repo",
            "files": [{"path": "/repo/a.py", "content": "print(1)"}],
        }
        resp = await client.post("/summaries", json=body)

        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"] == "ok"
        assert data["stats"]["map_call_count"] == 1
        assert data["stats"]["reduce_call_count"] == 1
        assert api_container.summary_cache_store.load("ws", 3) is not None

        resp = await client.delete("/summaries/ws/3")
        assert resp.json() == {"cleared": 1, "workspace_id": "ws", "node_id": 3}
        assert api_container.summary_cache_store.load("ws", 3) is None

    @pytest.mark.asyncio
    async def test_missing_agent_id(self, client):
        resp = await client.post("/summaries", json={"agent_id": "", "source_node_id": 3})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_clear_workspace(self, client, api_container):
        resp = await client.delete("/summaries/empty-ws")
        assert resp.json() == {"cleared": 0, "workspace_id": "empty-ws"}


class TestFolders:
    @pytest.mark.asyncio
    async def test_read_folder(self, client, tmp_path):
        folder = tmp_path / "proj"
        folder.mkdir()
        (folder / "main.py").write_text("print('hi')\n")

        resp = await client.post("/folders/read", json={"path": str(folder)})

        assert resp.status_code == 200
        data = resp.json()
        assert data["file_count"] == 1
        assert "### main.py ###\nprint('hi')" in data["output"]

    @pytest.mark.asyncio
    async def test_missing_folder(self, client, tmp_path):
        resp = await client.post("/folders/read", json={"path": str(tmp_path / "missing")})
        assert resp.status_code == 404
