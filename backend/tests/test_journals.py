# tests for journals router - create, list, save responses, profile, complete

import pytest

from app.services import journal_service
from app.models.journal import Journal
from app.services.profile_service import build_heuristic_profile, validate_profile


class TestCreateJournal:

    async def test_create_with_default_title(self, client):
        resp = await client.post("/journals", json={})
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"]
        assert data["title"].startswith("My 2026 Vision - ")
        assert data["responses"] == []
        assert data["isComplete"] is False
        assert data["boardId"] is None

    async def test_create_with_title(self, client, mock_db):
        resp = await client.post("/journals", json={"title": "Winter reset"})
        assert resp.status_code == 201
        assert resp.json()["title"] == "Winter reset"
        assert len(mock_db.journals._data) == 1
        # stored snake_case, mongo _id never leaks out
        assert "created_at" in mock_db.journals._data[0]
        assert "_id" not in resp.json()

    async def test_title_too_long(self, client):
        resp = await client.post("/journals", json={"title": "x" * 201})
        assert resp.status_code == 422


class TestReadJournals:

    async def test_get_missing(self, client):
        resp = await client.get("/journals/does-not-exist")
        assert resp.status_code == 404

    async def test_list_most_recent_first(self, client):
        first = (await client.post("/journals", json={"title": "first"})).json()
        await client.post("/journals", json={"title": "second"})
        # touching the first journal moves it to the top
        await client.put(f"/journals/{first['id']}/responses", json={
            "promptId": "year-word", "question": "Word?", "answer": "Bloom",
        })
        resp = await client.get("/journals")
        assert resp.status_code == 200
        assert [j["title"] for j in resp.json()] == ["first", "second"]

    async def test_list_limit(self, client):
        for i in range(3):
            await client.post("/journals", json={"title": f"j{i}"})
        resp = await client.get("/journals?limit=2")
        assert len(resp.json()) == 2


class TestSaveResponse:

    async def test_save_and_overwrite(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        body = {"promptId": "year-word", "question": "Word?", "answer": "Bloom", "category": "year"}
        await client.put(f"/journals/{journal_id}/responses", json=body)
        await client.put(f"/journals/{journal_id}/responses", json={
            "promptId": "year-feeling", "question": "Feeling?", "answer": "Calm",
        })
        resp = await client.put(f"/journals/{journal_id}/responses", json={**body, "answer": "  Courage "})
        assert resp.status_code == 200
        responses = resp.json()["responses"]
        assert [r["promptId"] for r in responses] == ["year-word", "year-feeling"]
        assert responses[0]["answer"] == "Courage"
        assert responses[0]["timestamp"]

    async def test_prescribed_category_filled_in(self, client, answers):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        resp = await client.put(f"/journals/{journal_id}/responses", json={
            "promptId": "identity-becoming", "question": "Who?", "answer": answers["identity-becoming"],
        })
        journal = Journal.model_validate(resp.json())
        assert journal.responses[0].category == "identity"

        profile = build_heuristic_profile(journal_service.to_conversation(journal.responses))
        assert profile["identityStatements"] == [answers["identity-becoming"]]

    async def test_explicit_category_kept(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        resp = await client.put(f"/journals/{journal_id}/responses", json={
            "promptId": "dynamic-abc123", "question": "q", "answer": "a", "category": "values",
        })
        assert resp.json()["responses"][0]["category"] == "values"

    async def test_save_to_missing_journal(self, client):
        resp = await client.put("/journals/nope/responses", json={
            "promptId": "year-word", "question": "Word?", "answer": "Bloom",
        })
        assert resp.status_code == 404

    async def test_prompt_id_required(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        resp = await client.put(f"/journals/{journal_id}/responses", json={"question": "q", "answer": "a"})
        assert resp.status_code == 422


class TestProfileAndCompletion:

    async def test_update_profile(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        profile = validate_profile({"yearWord": "Bloom"}).model_dump(by_alias=True)
        resp = await client.patch(f"/journals/{journal_id}/profile", json={"profile": profile})
        assert resp.status_code == 200
        assert resp.json()["profile"]["yearWord"] == "Bloom"

        stored = (await client.get(f"/journals/{journal_id}")).json()
        assert stored["profile"]["personalMantra"] == profile["personalMantra"]

    async def test_complete(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        resp = await client.post(f"/journals/{journal_id}/complete")
        assert resp.status_code == 200
        assert resp.json()["isComplete"] is True


class TestJournalService:
    """repository-level behaviour"""

    async def test_update_touches_updated_at(self, journal_repo):
        journal = await journal_service.create_journal(journal_repo, "t")
        saved = await journal_service.save_response(journal_repo, journal, "year-word", "Word?", "Bloom")
        stored = await journal_service.get_journal(journal_repo, journal.id)
        assert stored.responses == saved.responses
        assert stored.updated_at >= journal.updated_at

    async def test_update_missing_record(self, journal_repo):
        assert await journal_repo.update("missing", {"title": "x"}) is False

    def test_to_conversation_skips_blank(self):
        from app.models.journal import ResponseEntry
        responses = [
            ResponseEntry(promptId="a", question="qa", answer="yes", timestamp="t", category="year"),
            ResponseEntry(promptId="b", question="qb", answer="", timestamp="t"),
        ]
        conversation = journal_service.to_conversation(responses)
        assert [c.prompt_id for c in conversation] == ["a"]
        assert conversation[0].category == "year"
