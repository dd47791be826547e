import anthropic
import logging
import time
from langfuse import Langfuse

from . import config
from .database import SB
from .logging_config import ExternalServiceError

logger = logging.getLogger(__name__)

langfuse = Langfuse(
    public_key=config.LANGFUSE_PUBLIC_KEY,
    secret_key=config.LANGFUSE_SECRET_KEY,
    host=config.LANGFUSE_HOST
) if config.LANGFUSE_PUBLIC_KEY else None

SYSTEM_WELLNESS_COACH = """You are the wellness coach for "Jendo," a cardiometabolic health app.
Objectives: (1) give short, friendly, actionable daily tips, (2) keep a supportive and safe tone,
(3) return STRICT JSON exactly in the requested shape with no extra prose.

Principles:
- Never prescribe or change medication; suggest consulting a clinician for anything medical.
- Personalize to the vitals provided, without repeating raw numbers back in every tip.
- Avoid duplicating advice across categories.
"""

# Rough USD per 1K tokens
COSTS = {
    "claude-3-5-haiku-20241022": {"input": 0.0008, "output": 0.004},
    "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
}

class AnthropicBackend:
    """Single-attempt text completion against Claude, bounded by a timeout."""

    def __init__(self, api_key: str = None, model: str = None, timeout: float = None,
                 max_tokens: int = None):
        self.api_key = api_key if api_key is not None else config.ANTHROPIC_API_KEY
        self.model = model or config.TIP_LLM_MODEL
        self.max_tokens = max_tokens or config.TIP_LLM_MAX_TOKENS
        timeout = timeout or config.TIP_LLM_TIMEOUT_SECONDS
        self.client = anthropic.Anthropic(
            api_key=self.api_key,
            timeout=timeout,
            max_retries=0
        ) if self.api_key else None

    @property
    def configured(self) -> bool:
        return self.client is not None

    def complete(self, prompt: str, system: str = None, metadata: dict = None) -> str:
        if not self.client:
            raise ExternalServiceError("Claude API", "API key not configured")

        start = time.time()
        generation = langfuse.start_generation(
            name="daily_tips", model=self.model, input=prompt, metadata=metadata or {}
        ) if langfuse else None

        try:
            resp = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.7,
                system=system or SYSTEM_WELLNESS_COACH,
                messages=[{"role": "user", "content": prompt}]
            )
        except anthropic.APIStatusError as e:
            self._record_failure(generation, start, e)
            raise ExternalServiceError("Claude API", str(e), e.status_code) from e
        except anthropic.APIError as e:
            # connection errors and timeouts
            self._record_failure(generation, start, e)
            raise ExternalServiceError("Claude API", str(e)) from e

        latency = int((time.time() - start) * 1000)
        text = "".join(
            block.text for block in resp.content if getattr(block, "type", None) == "text"
        )
        usage = {
            "input_tokens": resp.usage.input_tokens,
            "output_tokens": resp.usage.output_tokens
        }

        if generation:
            generation.update(output=text, usage_details=usage, metadata={"latency_ms": latency})
            generation.end()

        log_tool_run(
            tool_name="daily_tips",
            input_data={"prompt_chars": len(prompt), "model": self.model},
            output_data={"success": True, "chars": len(text)},
            model=self.model,
            latency_ms=latency,
            success=True,
            usage=usage,
            user_id=(metadata or {}).get("user_id")
        )
        return text

    def _record_failure(self, generation, start, error):
        latency = int((time.time() - start) * 1000)
        if generation:
            generation.update(level="ERROR", status_message=str(error))
            generation.end()
        log_tool_run(
            tool_name="daily_tips",
            input_data={"model": self.model},
            output_data=None,
            model=self.model,
            latency_ms=latency,
            success=False,
            error=str(error)
        )

def log_tool_run(tool_name, input_data, output_data, model, latency_ms, success,
                 error=None, user_id=None, usage=None):
    try:
        SB.client().table("tool_runs").insert({
            "user_id": user_id,
            "tool_name": tool_name,
            "input": input_data,
            "output": output_data,
            "model": model,
            "latency_ms": latency_ms,
            "cost_usd": calculate_cost(model, usage),
            "success": success,
            "error": error
        }).execute()
    except Exception as e:
        logger.warning(f"Failed to log tool run: {e}")

def calculate_cost(model, usage):
    if model not in COSTS or not usage:
        return 0.0

    rates = COSTS[model]
    return round(
        usage["input_tokens"] / 1000 * rates["input"]
        + usage["output_tokens"] / 1000 * rates["output"],
        6
    )
