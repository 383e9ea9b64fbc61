import pytest

from app.core.config import settings
from app.core.exceptions import AnalysisError


class TestCORSMiddleware:
    """Verify that CORS headers are present on responses."""

    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_cors_headers_on_get(self, async_client):
        response = await async_client.get(
            "/api/v1/health", headers={"Origin": "http://localhost:3000"}
        )
        assert response.status_code == 200
        # CORS should return the specific allowed origin, not wildcard "*"
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestRubricEndpoints:
    @pytest.mark.asyncio
    async def test_no_active_rubric_is_404(self, async_client):
        response = await async_client.get("/api/v1/rubric")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_get_active_rubric(self, async_client, active_rubric):
        response = await async_client.get("/api/v1/rubric")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(active_rubric.id)
        assert body["version"] == 1
        assert body["is_active"] is True
        assert len(body["categories"]) == 6
        assert len(body["categories"][0]["scoring_criteria"]) == 5
        assert len(body["red_flags"]) == 12
        assert body["weight_validation"] == {
            "is_valid": True,
            "total": 100.0,
            "remaining": 0.0,
            "message": None,
        }

    @pytest.mark.asyncio
    async def test_draft_edit_and_activate_lifecycle(self, async_client, active_rubric):
        created = await async_client.post(
            "/api/v1/rubric",
            json={"name": "Q3 rubric", "clone_from_id": str(active_rubric.id)},
        )
        assert created.status_code == 201
        draft = created.json()
        assert draft["is_draft"] is True
        assert draft["version"] is None

        categories = draft["categories"]
        categories[0]["weight"] = 5  # 95 in total
        updated = await async_client.put(
            f"/api/v1/rubric/{draft['id']}", json={"categories": categories}
        )
        assert updated.status_code == 200
        assert updated.json()["weight_validation"]["message"] == "5% remaining to allocate"

        blocked = await async_client.post(f"/api/v1/rubric/{draft['id']}/activate")
        assert blocked.status_code == 409
        assert blocked.json()["type"] == "weight_validation_error"
        assert blocked.json()["weight_validation"]["remaining"] == 5

        categories[1]["weight"] = 35
        await async_client.put(f"/api/v1/rubric/{draft['id']}", json={"categories": categories})
        activated = await async_client.post(f"/api/v1/rubric/{draft['id']}/activate")
        assert activated.status_code == 200
        assert activated.json()["version"] == 2

        active = await async_client.get("/api/v1/rubric")
        assert active.json()["id"] == draft["id"]

        versions = (await async_client.get("/api/v1/rubric/versions")).json()
        assert [v["version"] for v in versions] == [2, 1]
        assert versions[0]["total_weight"] == 100
        assert versions[0]["category_count"] == 6

    @pytest.mark.asyncio
    async def test_activated_version_is_read_only(self, async_client, active_rubric):
        edit = await async_client.put(
            f"/api/v1/rubric/{active_rubric.id}", json={"name": "Changed"}
        )
        assert edit.status_code == 409
        assert edit.json()["type"] == "invalid_state"

        delete = await async_client.delete(f"/api/v1/rubric/{active_rubric.id}")
        assert delete.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_draft(self, async_client):
        created = await async_client.post(
            "/api/v1/rubric",
            json={
                "name": "Scratch",
                "categories": [{"name": "All", "slug": "all", "weight": 100}],
            },
        )
        draft_id = created.json()["id"]
        assert (await async_client.delete(f"/api/v1/rubric/{draft_id}")).status_code == 204
        assert (await async_client.get(f"/api/v1/rubric/{draft_id}")).status_code == 404


class TestScriptEndpoints:
    @pytest.mark.asyncio
    async def test_upload_list_activate_delete(self, async_client):
        payload = {"name": "Life v1", "product_type": "life_insurance", "content": "Hello"}
        first = await async_client.post("/api/v1/scripts", json=payload)
        assert first.status_code == 201
        assert first.json()["version"] == 1
        assert first.json()["product_label"] == "Life Insurance"

        second = await async_client.post(
            "/api/v1/scripts", json={**payload, "name": "Life v2", "activate": True}
        )
        assert second.json()["version"] == 2
        assert second.json()["is_active"] is True

        listing = await async_client.get(
            "/api/v1/scripts", params={"product_type": "life_insurance"}
        )
        assert [s["version"] for s in listing.json()] == [2, 1]
        assert "content" not in listing.json()[0]

        activated = await async_client.post(f"/api/v1/scripts/{first.json()['id']}/activate")
        assert activated.json()["is_active"] is True

        blocked = await async_client.delete(f"/api/v1/scripts/{first.json()['id']}")
        assert blocked.status_code == 409
        removed = await async_client.delete(f"/api/v1/scripts/{second.json()['id']}")
        assert removed.status_code == 204

    @pytest.mark.asyncio
    async def test_update_script_metadata(self, async_client, aca_script):
        response = await async_client.put(
            f"/api/v1/scripts/{aca_script.id}",
            json={"name": "ACA Script 2.2", "version_notes": "Renamed"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "ACA Script 2.2"
        assert body["version_notes"] == "Renamed"
        assert body["version"] == aca_script.version

        empty_name = await async_client.put(
            f"/api/v1/scripts/{aca_script.id}", json={"name": ""}
        )
        assert empty_name.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_product_type_is_422(self, async_client):
        response = await async_client.post(
            "/api/v1/scripts",
            json={"name": "Auto", "product_type": "auto_insurance", "content": "x"},
        )
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestSyncEndpoints:
    @pytest.mark.asyncio
    async def test_sync_review_and_apply(self, async_client, active_rubric, aca_script):
        started = await async_client.post(f"/api/v1/scripts/{aca_script.id}/sync")
        assert started.status_code == 202
        assert started.json()["status"] == "analyzing"
        sync_id = started.json()["sync_log_id"]

        # The background analysis has run by the time the transport returns
        status = (await async_client.get(f"/api/v1/scripts/sync/{sync_id}")).json()
        assert status["status"] == "pending_approval"
        assert status["rubric_config_id"] == str(active_rubric.id)
        assert status["changes_proposed"]["total_changes"] == 3

        applied = await async_client.post(
            f"/api/v1/scripts/sync/{sync_id}/apply",
            json={
                "approved_red_flag_changes": ["red_flag:missing_tax_filing_question:add"],
                "approved_by": "coach@fhe.test",
            },
        )
        assert applied.status_code == 200
        assert applied.json()["version"] == 2
        assert applied.json()["is_active"] is True

        final = (await async_client.get(f"/api/v1/scripts/sync/{sync_id}")).json()
        assert final["status"] == "applied"
        assert final["changes_approved"]["total_changes"] == 1
        assert final["changes_rejected"]["total_changes"] == 2

        again = await async_client.post(f"/api/v1/scripts/sync/{sync_id}/apply", json={})
        assert again.status_code == 409

        script = (await async_client.get(f"/api/v1/scripts/{aca_script.id}")).json()
        assert script["linked_rubric_id"] == applied.json()["id"]

    @pytest.mark.asyncio
    async def test_inline_analysis(self, async_client, active_rubric, aca_script, monkeypatch):
        monkeypatch.setattr(settings, "SYNC_ANALYSIS_INLINE", True)
        started = await async_client.post(f"/api/v1/scripts/{aca_script.id}/sync")
        assert started.status_code == 202
        assert started.json()["status"] == "pending_approval"

    @pytest.mark.asyncio
    async def test_failed_analysis_is_recorded(
        self, async_client, active_rubric, aca_script, fake_analyzer
    ):
        fake_analyzer.error = AnalysisError("Reasoning service returned 529")
        started = await async_client.post(f"/api/v1/scripts/{aca_script.id}/sync")
        sync_id = started.json()["sync_log_id"]

        status = (await async_client.get(f"/api/v1/scripts/sync/{sync_id}")).json()
        assert status["status"] == "rejected"
        assert status["error_message"] == "Reasoning service returned 529"
        assert status["changes_proposed"] is None

    @pytest.mark.asyncio
    async def test_reject_without_body(self, async_client, pending_sync):
        response = await async_client.post(f"/api/v1/scripts/sync/{pending_sync.id}/reject")
        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert response.json()["changes_rejected"]["total_changes"] == 3

    @pytest.mark.asyncio
    async def test_unknown_change_key_is_422(self, async_client, pending_sync):
        response = await async_client.post(
            f"/api/v1/scripts/sync/{pending_sync.id}/apply",
            json={"approved_category_changes": ["category:nope:add"]},
        )
        assert response.status_code == 422
        assert response.json()["type"] == "unknown_change_key"

    @pytest.mark.asyncio
    async def test_sync_history(self, async_client, pending_sync, aca_script):
        response = await async_client.get(f"/api/v1/scripts/{aca_script.id}/sync-logs")
        assert response.status_code == 200
        assert [log["id"] for log in response.json()] == [str(pending_sync.id)]

    @pytest.mark.asyncio
    async def test_sync_requires_active_rubric(self, async_client, aca_script):
        response = await async_client.post(f"/api/v1/scripts/{aca_script.id}/sync")
        assert response.status_code == 404
