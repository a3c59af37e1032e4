import asyncio
import base64
import logging
from types import SimpleNamespace

import pytest

from models.session_models import NO_SIGN
from services.openai.sentence_polisher import SentencePolisher
from services.openai.sign_classifier import SignClassifier
from services.realtime.providers import ProviderError
from services.realtime.response_parser import extract_text, extract_usage


class FakeResponses:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _client(response=None, error=None):
    return SimpleNamespace(responses=FakeResponses(response, error))


def _text_response(text: str):
    return SimpleNamespace(
        output=[SimpleNamespace(type="message", content=[SimpleNamespace(type="output_text", text=text)])],
        usage=SimpleNamespace(input_tokens=12, output_tokens=1),
    )


def test_classifier_sends_frame_with_deterministic_sampling(caplog):
    caplog.set_level(logging.INFO)
    client = _client(_text_response(" HELLO\n"))
    classifier = SignClassifier(client, model="vision-model")
    label = asyncio.run(classifier.classify(b"\xff\xd8jpeg"))

    assert label == "HELLO"
    call = client.responses.calls[0]
    assert call["model"] == "vision-model"
    assert call["temperature"] == 0.0
    assert call["top_p"] == 0.1
    content = call["input"][0]["content"]
    assert content[0]["image_url"] == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()
    assert NO_SIGN in content[1]["text"]
    assert "input_tokens=12, output_tokens=1" in caplog.text


def test_classifier_maps_empty_output_to_sentinel():
    client = _client(SimpleNamespace(output=[], output_text=""))
    assert asyncio.run(SignClassifier(client).classify(b"img")) == NO_SIGN


def test_classifier_wraps_transport_errors():
    client = _client(error=ConnectionError("reset"))
    with pytest.raises(ProviderError, match="API busy or network slow."):
        asyncio.run(SignClassifier(client).classify(b"img"))


def test_classifier_requires_client_and_image():
    with pytest.raises(ValueError):
        SignClassifier(None)
    with pytest.raises(ValueError):
        asyncio.run(SignClassifier(_client()).classify(b""))


def test_polisher_returns_polished_text():
    client = _client(SimpleNamespace(output=[], output_text="I want to go home.\n"))
    polished = asyncio.run(SentencePolisher(client, model="text-model").refine("ME WANT GO HOME"))

    assert polished == "I want to go home."
    call = client.responses.calls[0]
    assert call["model"] == "text-model"
    assert call["temperature"] == 0.7
    assert '"ME WANT GO HOME"' in call["input"]


def test_polisher_blank_input_makes_no_call():
    client = _client()
    assert asyncio.run(SentencePolisher(client).refine("   ")) == ""
    assert client.responses.calls == []


def test_polisher_falls_back_to_raw_text_on_empty_output():
    client = _client(SimpleNamespace(output=[], output_text=""))
    assert asyncio.run(SentencePolisher(client).refine("HELLO WORLD")) == "HELLO WORLD"


def test_polisher_raises_provider_error(caplog):
    client = _client(error=TimeoutError("slow"))
    with pytest.raises(ProviderError):
        asyncio.run(SentencePolisher(client).refine("HELLO"))
    assert "Sentence polishing error: slow" in caplog.text


def test_response_parser_handles_dicts_and_missing_usage():
    response = {"output": [{"type": "message", "content": [{"type": "output_text", "text": "YES"}]}]}
    assert extract_text(response) == "YES"
    assert extract_usage(response) == {"input_tokens": None, "output_tokens": None}
