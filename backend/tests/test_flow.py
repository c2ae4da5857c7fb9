# tests for the flow router - a journaling session end to end over http
# generation collaborators are fakes; with no scripted replies every call fails
# and the services fall back to their hand-authored defaults

from unittest.mock import patch

import pytest

from app.services.question_service import FALLBACK_BATCHES

REQUIRED = ["year-feeling", "year-word", "core-transformation", "identity-becoming"]


async def _start(client, journal_id=None, edit=False):
    if journal_id is None:
        journal_id = (await client.post("/journals", json={})).json()["id"]
    resp = await client.post(f"/journals/{journal_id}/flow/start", json={"edit": edit})
    assert resp.status_code == 200
    return journal_id, resp.json()


async def _next(client, journal_id, answer=""):
    resp = await client.post(f"/journals/{journal_id}/flow/next", json={"answer": answer})
    assert resp.status_code == 200
    return resp.json()


async def _answer_prescribed(client, journal_id, answers):
    view = await _next(client, journal_id)  # welcome interlude
    for pid in REQUIRED:
        assert view["currentPrompt"]["id"] == pid
        view = await _next(client, journal_id, answers[pid])
    return view


class TestStart:

    async def test_start_fresh(self, client):
        _, view = await _start(client)
        assert view["phase"] == "prescribed"
        assert view["currentIndex"] == 0
        assert view["currentPrompt"]["id"] == "welcome-breath"
        assert view["currentPrompt"]["isInterlude"] is True
        assert view["progress"] == 20.0
        assert view["answeredCount"] == 0

    async def test_start_unknown_journal(self, client):
        resp = await client.post("/journals/missing/flow/start", json={})
        assert resp.status_code == 404

    async def test_view_without_session(self, client):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        resp = await client.get(f"/journals/{journal_id}/flow")
        assert resp.status_code == 404

    async def test_resume_at_first_unanswered(self, client, answers):
        journal_id = (await client.post("/journals", json={})).json()["id"]
        await client.put(f"/journals/{journal_id}/responses", json={
            "promptId": "year-feeling", "question": "q", "answer": answers["year-feeling"], "category": "year",
        })
        _, view = await _start(client, journal_id)
        assert view["currentPrompt"]["id"] == "year-word"


class TestPrescribedFlow:

    async def test_interlude_never_saved(self, client, mock_db):
        journal_id, _ = await _start(client)
        view = await _next(client, journal_id, "some text on the welcome screen")
        assert view["currentIndex"] == 1
        journal = (await client.get(f"/journals/{journal_id}")).json()
        assert journal["responses"] == []

    async def test_answers_saved_with_category(self, client, answers):
        journal_id, _ = await _start(client)
        await _next(client, journal_id)
        await _next(client, journal_id, "  " + answers["year-feeling"] + "  ")
        journal = (await client.get(f"/journals/{journal_id}")).json()
        assert journal["responses"][0]["promptId"] == "year-feeling"
        assert journal["responses"][0]["answer"] == answers["year-feeling"]
        assert journal["responses"][0]["category"] == "year"

    async def test_blank_answer_skipped(self, client):
        journal_id, _ = await _start(client)
        await _next(client, journal_id)
        view = await _next(client, journal_id, "   ")
        assert view["currentIndex"] == 2
        assert view["answeredCount"] == 0

    async def test_four_answers_reach_transition(self, client, answers):
        journal_id, _ = await _start(client)
        view = await _answer_prescribed(client, journal_id, answers)
        assert view["phase"] == "transition"
        assert view["currentPrompt"] is None
        assert view["prescribedComplete"] is True
        assert view["answeredCount"] == 4

    async def test_last_prompt_waits_for_missing_answers(self, client, answers):
        journal_id, _ = await _start(client)
        await _next(client, journal_id)
        await _next(client, journal_id, "")  # year-feeling skipped
        await _next(client, journal_id, answers["year-word"])
        await _next(client, journal_id, answers["core-transformation"])
        view = await _next(client, journal_id, answers["identity-becoming"])
        assert view["phase"] == "prescribed"
        assert view["currentPrompt"]["id"] == "identity-becoming"
        assert view["prescribedComplete"] is False

    async def test_back_saves_and_shows_previous_answer(self, client, answers):
        journal_id, _ = await _start(client)
        await _next(client, journal_id)
        await _next(client, journal_id, answers["year-feeling"])
        resp = await client.post(f"/journals/{journal_id}/flow/back", json={"answer": answers["year-word"]})
        assert resp.status_code == 200
        view = resp.json()
        assert view["currentPrompt"]["id"] == "year-feeling"
        assert view["currentAnswer"] == answers["year-feeling"]
        assert view["answeredCount"] == 2

    async def test_continue_rejected_in_prescribed(self, client):
        journal_id, _ = await _start(client)
        resp = await client.post(f"/journals/{journal_id}/flow/continue")
        assert resp.status_code == 409


class TestDynamicFlow:

    async def test_continue_appends_batch(self, client, answers, text_generator):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)

        resp = await client.post(f"/journals/{journal_id}/flow/continue")
        assert resp.status_code == 200
        view = resp.json()
        assert view["phase"] == "dynamic"
        assert view["batchNumber"] == 1
        assert view["dynamicBatchStart"] == 5
        assert view["currentIndex"] == 5
        assert len(view["prompts"]) == 9
        assert view["currentPrompt"]["question"] == FALLBACK_BATCHES[0][0].question
        assert view["currentPrompt"]["isDynamic"] is True

        # the request carried every answer so far
        system_instruction, _ = text_generator.calls[0]
        assert answers["identity-becoming"] in system_instruction

    async def test_dynamic_answer_keeps_category(self, client, answers):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        view = (await client.post(f"/journals/{journal_id}/flow/continue")).json()
        prompt_id = view["currentPrompt"]["id"]

        await _next(client, journal_id, "Honesty, even when it is hard")
        journal = (await client.get(f"/journals/{journal_id}")).json()
        saved = next(r for r in journal["responses"] if r["promptId"] == prompt_id)
        assert saved["category"] == "values"

    async def test_batch_failure_returns_to_transition(self, client, answers):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        with patch("app.services.flow_service.generate_questions", side_effect=RuntimeError("timeout")):
            resp = await client.post(f"/journals/{journal_id}/flow/continue")
        assert resp.status_code == 200
        view = resp.json()
        assert view["phase"] == "transition"
        assert view["batchNumber"] == 0
        assert len(view["prompts"]) == 5

    async def test_end_of_batch_then_back(self, client, answers):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        await client.post(f"/journals/{journal_id}/flow/continue")
        for _ in range(4):
            view = await _next(client, journal_id, "thoughtful answer")
        assert view["phase"] == "transition"

        view = (await client.post(f"/journals/{journal_id}/flow/back", json={})).json()
        assert view["phase"] == "dynamic"
        assert view["currentIndex"] == 8


class TestFinish:

    async def test_finish_builds_and_renders_board(self, client, answers, image_generator):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)

        resp = await client.post(f"/journals/{journal_id}/flow/finish")
        assert resp.status_code == 200
        view = resp.json()
        assert view["phase"] == "complete"
        board_id = view["boardId"]
        assert board_id

        journal = (await client.get(f"/journals/{journal_id}")).json()
        assert journal["isComplete"] is True
        assert journal["boardId"] == board_id
        assert journal["profile"]["yearWord"] == answers["year-word"]

        board = (await client.get(f"/boards/{board_id}")).json()
        assert board["journalId"] == journal_id
        assert len(board["canvas"]["elements"]) == 12
        # tiles render in a background task that finishes before the client returns
        assert all(el["data"]["status"] == "complete" for el in board["canvas"]["elements"])
        assert all(el["data"]["src"].startswith("data:image/png;base64,") for el in board["canvas"]["elements"])
        assert len(image_generator.prompts) == 12
        assert board["canvas"]["elements"][0]["data"]["title"] == answers["year-word"]

    async def test_finish_only_from_transition(self, client):
        journal_id, _ = await _start(client)
        resp = await client.post(f"/journals/{journal_id}/flow/finish")
        assert resp.status_code == 409

    async def test_nothing_after_complete(self, client, answers):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        await client.post(f"/journals/{journal_id}/flow/finish")
        resp = await client.post(f"/journals/{journal_id}/flow/next", json={"answer": "more"})
        assert resp.status_code == 409

    async def test_board_generation_failure_leaves_empty_board(self, client, answers):
        from app.services.board_service import BoardGenerationError
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        with patch("app.services.flow_service.generate_board", side_effect=BoardGenerationError("boom")):
            view = (await client.post(f"/journals/{journal_id}/flow/finish")).json()
        assert view["phase"] == "complete"
        board = (await client.get(f"/boards/{view['boardId']}")).json()
        assert board["canvas"]["elements"] == []

    async def test_edit_mode_regenerates_same_board(self, client, answers):
        journal_id, _ = await _start(client)
        await _answer_prescribed(client, journal_id, answers)
        first = (await client.post(f"/journals/{journal_id}/flow/finish")).json()

        _, view = await _start(client, journal_id, edit=True)
        assert view["editMode"] is True
        assert view["currentIndex"] == 0
        for _ in range(5):
            view = await _next(client, journal_id, view["currentAnswer"])
        assert view["phase"] == "transition"

        second = (await client.post(f"/journals/{journal_id}/flow/finish")).json()
        assert second["boardId"] == first["boardId"]

        board = (await client.get(f"/boards/{first['boardId']}")).json()
        assert len(board["versions"]) == 1
        assert len(board["versions"][0]["snapshot"]["elements"]) == 12

    async def test_edit_without_board_is_plain_session(self, client):
        _, view = await _start(client, edit=True)
        assert view["editMode"] is False
