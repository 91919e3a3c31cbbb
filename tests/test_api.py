"""Tests for the FastAPI surface: health check and HTTP tool calls."""
import ast
from pathlib import Path

from fastapi.testclient import TestClient

import devops_core
from devops_mcp import __version__
from devops_mcp.api.main import app

client = TestClient(app)


class TestHealth:
    def test_health_shape(self):
        """Health reports status, timestamp and version."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert "timestamp" in body

    def test_root(self):
        """The root endpoint names the service."""
        assert client.get("/").json()["name"] == "DevOps MCP API"


class TestToolRoutes:
    def test_list_tools(self):
        """The tool catalogue includes the work item tools."""
        response = client.get("/tools")

        names = {tool["name"] for tool in response.json()}
        assert {"get_work_item", "find_parent_feature", "validate_azure_devops_user"} <= names

    def test_unknown_tool_is_404(self):
        """Unknown tool names are a 404, not a tool error."""
        response = client.post("/tools/drop_database", json={})
        assert response.status_code == 404

    def test_call_tool(self):
        """A tool call returns MCP-shaped content."""
        response = client.post("/tools/add", json={"a": 2, "b": 40})

        assert response.status_code == 200
        body = response.json()
        assert body["isError"] is False
        assert body["content"][0]["text"] == "2 + 40 = 42"

    def test_missing_credential_headers(self):
        """Without headers the identity gate refuses before any network call."""
        response = client.post("/tools/find_parent_feature", json={"work_item_id": 100})

        body = response.json()
        assert body["isError"] is True
        assert "incomplete" in body["content"][0]["text"]

    def test_invalid_arguments(self):
        """Bad arguments come back as a tool error."""
        response = client.post(
            "/tools/get_work_item",
            json={"work_item_id": 0},
            headers={"X-Azure-DevOps-PAT": "pat", "X-Azure-DevOps-Org-Url": "https://dev.azure.com/contoso"},
        )

        body = response.json()
        assert body["isError"] is True
        assert "Invalid arguments" in body["content"][0]["text"]


class TestLayering:
    """The core package stays independent of the MCP layer."""

    def test_core_never_imports_mcp(self):
        """No module under devops_core imports devops_mcp."""
        core = Path(devops_core.__file__).parent
        for path in core.rglob("*.py"):
            for node in ast.walk(ast.parse(path.read_text(encoding="utf-8"))):
                if isinstance(node, ast.Import):
                    names = [alias.name for alias in node.names]
                elif isinstance(node, ast.ImportFrom):
                    names = [node.module or ""]
                else:
                    continue
                assert not any(name.startswith("devops_mcp") for name in names), path
