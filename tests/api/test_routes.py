"""HTTP tests against the FastAPI app with the model replaced by FakeLLM."""

import json

from conassess.blanks import SENTINEL_INSTRUCTION
from conassess.db import SessionLocal
from conassess.models import AuthUser


GENERATED = {
    "context": "# Compose\n**At Blank 1:** image?\n**At Blank 2:** port?\n**At Blank 3:** network?",
    "codeTemplate": "services:\n  web:\n    ports: [___BLANK_2___]\n    image: ___BLANK_1___\n",
    "steps": [
        {"id": "step_1", "instruction": "At Blank 1: image?", "expectedAnswer": "nginx", "outputSimulation": ""},
        {"id": "step_2", "instruction": "At Blank 2: port?", "expectedAnswer": "\"80:80\"", "outputSimulation": ""},
    ],
}


def step_payload(index, status, correct=None):
    return {
        "stepIndex": index,
        "instruction": f"question {index}",
        "userAnswer": "a",
        "expectedAnswer": "e",
        "correct": status == "correct" if correct is None else correct,
        "status": status,
        "feedback": "",
        "timeTakenMs": 1200,
    }


class TestAuth:
    def test_info(self, client):
        assert client.get("/info").json()["status"] == "ok"

    def test_register_and_me(self, client, auth_headers):
        assert client.get("/auth/me", headers=auth_headers).json() == {"username": "alice"}

    def test_duplicate_register(self, client, auth_headers):
        r = client.post("/auth/register", json={"username": "alice", "password": "x", "email": "a@b.c"})
        assert r.status_code == 409

    def test_bad_password(self, client, auth_headers):
        r = client.post("/auth/token", data={"username": "alice", "password": "wrong"})
        assert r.status_code == 401

    def test_requires_token(self, client):
        assert client.get("/auth/me").status_code == 401


class TestUsers:
    def test_profile_roundtrip(self, client, auth_headers):
        body = {"name": "Alice", "email": "alice@example.com", "job_role": "SRE", "experience": "Senior"}
        r = client.put("/users/profile", json=body, headers=auth_headers)
        assert r.status_code == 200

        r = client.put("/users/profile", json={**body, "job_role": "Platform"}, headers=auth_headers)
        assert r.json()["job_role"] == "Platform"

        r = client.get("/users/alice", headers=auth_headers)
        assert r.json()["name"] == "Alice"
        assert r.json()["job_role"] == "Platform"

    def test_missing_profile(self, client, auth_headers):
        assert client.get("/users/alice", headers=auth_headers).status_code == 404

    def test_other_users_profile_is_forbidden(self, client, auth_headers, other_headers):
        body = {"name": "Alice", "email": "alice@example.com", "job_role": "SRE", "experience": "Senior"}
        client.put("/users/profile", json=body, headers=auth_headers)

        assert client.get("/users/alice", headers=other_headers).status_code == 403
        assert client.get("/users/nobody", headers=other_headers).status_code == 403

    def test_invalid_experience(self, client, auth_headers):
        body = {"name": "A", "email": "a@b.c", "job_role": "SRE", "experience": "Guru"}
        assert client.put("/users/profile", json=body, headers=auth_headers).status_code == 422


class TestScenarios:
    def test_list_configs(self, client):
        configs = client.get("/scenarios").json()
        assert configs[0]["id"] == "ai-docker-networking"

    def test_generate_normalizes(self, client, auth_headers, fake_llm):
        fake_llm.replies.append(json.dumps(GENERATED))

        r = client.post("/scenarios/generate", json={"topic": "Docker Compose", "blanks": 3}, headers=auth_headers)

        assert r.status_code == 200
        scenario = r.json()
        assert scenario["id"] == "ai-docker-compose"
        assert scenario["codeTemplate"] == "services:\n  web:\n    ports: [___BLANK_1___]\n    image: ___BLANK_2___\n"
        assert [s["expectedAnswer"] for s in scenario["steps"]] == ["\"80:80\"", "nginx"]
        assert [s["instruction"] for s in scenario["steps"]] == ["At Blank 1: port?", "At Blank 2: image?"]
        assert scenario["context"].startswith("# Compose\n**At Blank 2:** image?\n**At Blank 1:** port?")

    def test_generate_by_config_id(self, client, auth_headers, fake_llm):
        fake_llm.replies.append(json.dumps(GENERATED))

        r = client.post("/scenarios/generate", json={"config_id": "ai-docker-networking"}, headers=auth_headers)

        assert r.json()["title"] == "Docker Networking Challenge"
        assert "5-step Docker Networking" in fake_llm.calls[0]["messages"][1].content

    def test_generate_unknown_config(self, client, auth_headers):
        r = client.post("/scenarios/generate", json={"config_id": "nope"}, headers=auth_headers)
        assert r.status_code == 404

    def test_generate_needs_topic(self, client, auth_headers):
        assert client.post("/scenarios/generate", json={}, headers=auth_headers).status_code == 400

    def test_generation_failure_is_502(self, client, auth_headers, fake_llm):
        fake_llm.replies.append("not json")

        r = client.post("/scenarios/generate", json={"topic": "Git"}, headers=auth_headers)

        assert r.status_code == 502

    def test_request_limit(self, client, auth_headers, fake_llm):
        with SessionLocal() as db:
            row = db.get(AuthUser, "alice")
            row.requests_limit = 1
            db.commit()
        fake_llm.replies.extend([json.dumps(GENERATED), json.dumps(GENERATED)])

        assert client.post("/scenarios/generate", json={"topic": "Git"}, headers=auth_headers).status_code == 200
        assert client.post("/scenarios/generate", json={"topic": "Git"}, headers=auth_headers).status_code == 429

    def test_normalize_fills_missing_steps(self, client, auth_headers):
        raw = {**GENERATED, "codeTemplate": "___BLANK_3___ ___BLANK_1___ ___BLANK_2___"}

        r = client.post("/scenarios/normalize", json=raw, headers=auth_headers)

        steps = r.json()["steps"]
        assert [s["id"] for s in steps] == ["step_1", "step_2", "step_3"]
        assert steps[0]["instruction"] == SENTINEL_INSTRUCTION
        assert steps[0]["expectedAnswer"] == "???"
        assert [s["expectedAnswer"] for s in steps[1:]] == ["nginx", "\"80:80\""]


class TestAnswers:
    def test_validate(self, client, auth_headers, fake_llm):
        fake_llm.replies.append('{"status": "partially_correct", "feedback": "almost", "correctedAnswer": "nginx:latest"}')
        body = {"answer": "ngnix", "step": GENERATED["steps"][0], "scenario": GENERATED}

        r = client.post("/answers/validate", json=body, headers=auth_headers)

        assert r.status_code == 200
        assert r.json() == {
            "correct": False,
            "status": "partially_correct",
            "feedback": "almost",
            "correctedAnswer": "nginx:latest",
        }

    def test_validate_empty_answer(self, client, auth_headers):
        body = {"answer": "   ", "step": GENERATED["steps"][0]}
        assert client.post("/answers/validate", json=body, headers=auth_headers).status_code == 400

    def test_sentinel_step_is_not_sent_to_model(self, client, auth_headers, fake_llm):
        step = {"id": "step_1", "instruction": SENTINEL_INSTRUCTION, "expectedAnswer": "???"}

        r = client.post("/answers/validate", json={"answer": "x", "step": step}, headers=auth_headers)

        assert r.json()["status"] == "incorrect"
        assert fake_llm.calls == []

    def test_chat(self, client, auth_headers, fake_llm):
        fake_llm.replies.append("Think about image tags.")
        body = {"messages": [{"role": "user", "content": "hint"}], "scenario": GENERATED, "step_index": 0}

        r = client.post("/answers/chat", json=body, headers=auth_headers)

        assert r.json() == {"role": "assistant", "content": "Think about image tags."}


class TestResults:
    def submit(self, client, headers, steps, **extra):
        body = {"topic": "Docker", "difficulty": "Medium", "steps": steps, **extra}
        return client.post("/tests/submit", json=body, headers=headers)

    def test_submit_scores_and_summarizes(self, client, auth_headers):
        steps = [step_payload(0, "correct"), step_payload(1, "partially_correct"), step_payload(2, "incorrect")]

        r = self.submit(client, auth_headers, steps)

        assert r.status_code == 201
        assert r.json()["score"] == 50
        assert r.json()["correct_answers"] == 1
        assert r.json()["total_steps"] == 3

        detail = client.get(f"/tests/{r.json()['id']}", headers=auth_headers).json()
        assert detail["username"] == "alice"
        assert detail["ai_summary"].startswith("Assessment Summary: 50%")
        assert detail["steps"][1]["status"] == "partially_correct"
        assert detail["steps"][1]["timeTakenMs"] == 1200
        assert detail["profile"] is None

    def test_legacy_steps_without_status(self, client, auth_headers):
        steps = [step_payload(0, None, correct=True), step_payload(1, None, correct=False)]

        r = self.submit(client, auth_headers, steps, aiSummary="kept as sent")

        assert r.json()["score"] == 50
        detail = client.get(f"/tests/{r.json()['id']}", headers=auth_headers).json()
        assert detail["ai_summary"] == "kept as sent"

    def test_rejects_empty_steps(self, client, auth_headers):
        assert self.submit(client, auth_headers, []).status_code == 422

    def test_rejects_unknown_difficulty(self, client, auth_headers):
        body = {"topic": "Docker", "difficulty": "Senior", "steps": [step_payload(0, "correct")]}
        assert client.post("/tests/submit", json=body, headers=auth_headers).status_code == 422

    def test_dashboard_lists_newest_first(self, client, auth_headers):
        first = self.submit(client, auth_headers, [step_payload(0, "incorrect")]).json()
        second = self.submit(client, auth_headers, [step_payload(0, "correct")]).json()

        listed = client.get("/tests/user/alice", headers=auth_headers).json()

        assert [t["id"] for t in listed] == [second["id"], first["id"]]
        assert [t["score"] for t in listed] == [100, 0]

    def test_detail_includes_profile(self, client, auth_headers):
        client.put(
            "/users/profile",
            json={"name": "Alice", "email": "a@example.com", "job_role": "SRE", "experience": "Mid"},
            headers=auth_headers,
        )
        created = self.submit(client, auth_headers, [step_payload(0, "correct")]).json()

        detail = client.get(f"/tests/{created['id']}", headers=auth_headers).json()

        assert detail["profile"]["job_role"] == "SRE"

    def test_missing_result(self, client, auth_headers):
        assert client.get("/tests/999", headers=auth_headers).status_code == 404

    def test_other_users_results_are_forbidden(self, client, auth_headers, other_headers):
        created = self.submit(client, auth_headers, [step_payload(0, "correct")]).json()

        assert client.get("/tests/user/alice", headers=other_headers).status_code == 403
        assert client.get(f"/tests/{created['id']}", headers=other_headers).status_code == 403
        assert client.get("/tests/user/bob", headers=other_headers).json() == []
        assert client.get(f"/tests/{created['id']}", headers=auth_headers).status_code == 200
