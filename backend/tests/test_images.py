# tests for standalone image generation

import base64


class TestGenerateImage:

    async def test_generate(self, client, image_generator):
        resp = await client.post("/images/generate", json={"prompt": "A quiet harbor", "style": "watercolor"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        header, encoded = data["imageUrl"].split(",", 1)
        assert header == "data:image/png;base64"
        assert base64.b64decode(encoded) == b"\x89PNG-test"
        assert data["prompt"].startswith("A quiet harbor. Style: watercolor painting")
        assert image_generator.prompts == [data["prompt"]]

    async def test_default_style(self, client):
        resp = await client.post("/images/generate", json={"prompt": "A quiet harbor"})
        assert "professional photography" in resp.json()["prompt"]

    async def test_provider_failure(self, client, image_generator):
        image_generator.fail_on.add("harbor")
        resp = await client.post("/images/generate", json={"prompt": "A quiet harbor"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Failed to generate image"

    async def test_empty_prompt(self, client):
        resp = await client.post("/images/generate", json={"prompt": ""})
        assert resp.status_code == 422
