import anthropic
import httpx
import pytest
from unittest.mock import MagicMock, patch

from backend.app.llm import AnthropicBackend, calculate_cost
from backend.app.logging_config import ExternalServiceError

def test_backend_without_key_is_unconfigured():
    backend = AnthropicBackend(api_key="")
    assert not backend.configured
    with pytest.raises(ExternalServiceError):
        backend.complete("hello")

def test_client_is_single_attempt_with_timeout():
    backend = AnthropicBackend(api_key="sk-test", timeout=7)
    assert backend.configured
    assert backend.client.max_retries == 0
    assert backend.client.timeout == 7

@patch("backend.app.llm.log_tool_run")
def test_complete_joins_text_blocks(mock_log):
    backend = AnthropicBackend(api_key="sk-test", model="claude-3-5-haiku-20241022")
    backend.client = MagicMock()
    backend.client.messages.create.return_value = MagicMock(
        content=[MagicMock(type="text", text='{"diet": '), MagicMock(type="text", text="[]}")],
        usage=MagicMock(input_tokens=100, output_tokens=50)
    )

    assert backend.complete("prompt") == '{"diet": []}'
    kwargs = backend.client.messages.create.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
    assert mock_log.call_args.kwargs["success"] is True

@patch("backend.app.llm.log_tool_run")
def test_timeout_becomes_external_service_error(mock_log):
    backend = AnthropicBackend(api_key="sk-test")
    backend.client = MagicMock()
    backend.client.messages.create.side_effect = anthropic.APITimeoutError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )

    with pytest.raises(ExternalServiceError):
        backend.complete("prompt")
    assert mock_log.call_args.kwargs["success"] is False

def test_tool_run_logging_failure_is_swallowed():
    with patch("backend.app.llm.SB.client", side_effect=RuntimeError("not configured")):
        from backend.app.llm import log_tool_run
        log_tool_run("daily_tips", {}, None, "m", 10, False, error="x")

def test_calculate_cost():
    usage = {"input_tokens": 1000, "output_tokens": 1000}
    assert calculate_cost("claude-3-5-haiku-20241022", usage) == pytest.approx(0.0048)
    assert calculate_cost("unknown-model", usage) == 0.0
    assert calculate_cost("claude-3-5-haiku-20241022", None) == 0.0
