"""Tests for the LLM client: retry policy and JSON handling."""

from unittest.mock import MagicMock, patch

import pytest

from eduportal.llm.client import (
    LLMClient,
    LLMConfig,
    LLMError,
    LLMResponse,
    LLMResponseError,
    LLMTruncatedError,
    Message,
    is_retryable,
    with_retry,
)


class TestRetryPolicy:
    def test_only_server_errors_are_retryable(self):
        assert is_retryable(Exception("Error code: 500"))
        assert is_retryable(Exception("An INTERNAL ERROR has occurred"))
        assert not is_retryable(Exception("Error code: 429 rate limited"))

    def test_retries_with_exponential_backoff(self):
        waits = []
        fn = MagicMock(side_effect=[LLMError("500"), LLMError("500"), "ok"])

        assert with_retry(fn, retries=3, delay=1.0, sleep=waits.append) == "ok"
        assert waits == [1.0, 2.0]
        assert fn.call_count == 3

    def test_gives_up_after_retries(self):
        waits = []
        fn = MagicMock(side_effect=LLMError("internal error"))

        with pytest.raises(LLMError):
            with_retry(fn, retries=3, delay=0.5, sleep=waits.append)
        assert fn.call_count == 4
        assert waits == [0.5, 1.0, 2.0]

    def test_non_retryable_raises_immediately(self):
        fn = MagicMock(side_effect=LLMError("401 unauthorized"))
        with pytest.raises(LLMError):
            with_retry(fn, sleep=lambda _: pytest.fail("should not sleep"))
        assert fn.call_count == 1


@pytest.fixture
def client():
    config = LLMConfig(provider="lmstudio", base_url="http://localhost:1234/v1", model="test")
    with patch("eduportal.llm.client.OpenAI"):
        yield LLMClient(config=config)


def _response(content: str, finish_reason: str = "stop") -> LLMResponse:
    return LLMResponse(content=content, model="test", provider="lmstudio", finish_reason=finish_reason)


class TestJsonParsing:
    def test_parses_fenced_block(self, client):
        assert client._try_parse_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_strips_reasoning_blocks(self, client):
        assert client._try_parse_json('<think>hmm</think>{"a": 2}') == {"a": 2}

    def test_parses_embedded_array(self, client):
        assert client._try_parse_json('Aqui está: [1, 2] fim') == [1, 2]

    def test_garbage_returns_none(self, client):
        assert client._try_parse_json("sem json aqui") is None


class TestChatJson:
    def test_truncated_unparsable_output_raises(self, client):
        with patch.object(client, "chat", return_value=_response('{"questions": [', "length")):
            with pytest.raises(LLMTruncatedError):
                client.chat_json([Message("user", "x")])

    def test_repair_retry_recovers(self, client):
        replies = [_response("não é json"), _response('{"ok": true}')]
        with patch.object(client, "chat", side_effect=replies) as chat:
            assert client.chat_json([Message("user", "x")]) == {"ok": True}
        assert chat.call_count == 2

    def test_gives_up_after_repair(self, client):
        replies = [_response("não é json"), _response("ainda não")]
        with patch.object(client, "chat", side_effect=replies):
            with pytest.raises(LLMResponseError):
                client.chat_json([Message("user", "x")])

    def test_provider_error_is_wrapped(self, client):
        client._client.chat.completions.create.side_effect = RuntimeError("boom")
        with pytest.raises(LLMError, match="Erro na chamada à IA"):
            client.chat([Message("user", "x")])

    def test_json_mode_only_for_supporting_providers(self, client):
        create = client._client.chat.completions.create
        create.return_value = MagicMock(
            choices=[MagicMock(message=MagicMock(content="{}"), finish_reason="stop")],
            usage=None,
            model="test",
        )
        client.chat([Message("user", "x")], json_mode=True)
        assert "response_format" not in create.call_args.kwargs
