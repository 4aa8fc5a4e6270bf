from __future__ import annotations
import json, logging, re, time
from typing import Any, Dict

from . import config
from .llm_cfg import client as llm_client, settings as llm_settings

log = logging.getLogger(__name__)

_FENCE_RX = re.compile(r"```(?:json)?\s*", re.I)


class LLMUnavailable(RuntimeError):
    """No backend is configured; callers use their static fallback."""


def backend_in_use() -> str:
    return config.get_backend(config.load_config()) or "none"


def strip_fences(text: str) -> str:
    return _FENCE_RX.sub("", text or "").strip()


def _chat(system: str, user: str, *, temperature: float | None, max_tokens: int | None,
          json_mode: bool) -> str:
    backend = backend_in_use()
    if backend == "none":
        raise LLMUnavailable("LLM backend disabled")
    s = llm_settings(backend); cli = llm_client(s)
    kwargs: Dict[str, Any] = {
        "model": s.model,
        "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
        "temperature": config.LLM_TEMPERATURE if temperature is None else temperature,
        "max_tokens": max_tokens or config.LLM_MAX_TOKENS,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    resp = cli.chat.completions.create(**kwargs)
    return resp.choices[0].message.content or ""


def _log_call(kind: str, backend: str, prompt: str, raw: str | None, error: str | None, t0: float) -> None:
    path = config.LLM_LOG_PATH
    if not path:
        return
    entry = {
        "ts": round(time.time(), 3),
        "kind": kind,
        "backend": backend,
        "prompt": (prompt or "")[:800],
        "raw": (raw or "")[:1200],
        "error": error,
        "rt_ms": int((time.time() - t0) * 1000),
    }
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")
    except OSError as exc:
        log.debug("llm log write failed: %s", exc)


def complete_text(system: str, user: str, *, kind: str = "text",
                  temperature: float | None = None, max_tokens: int | None = None) -> str:
    """Single chat completion returning plain text. Raises on any backend failure."""
    t0 = time.time()
    try:
        raw = _chat(system, user, temperature=temperature, max_tokens=max_tokens, json_mode=False)
    except LLMUnavailable:
        raise
    except Exception as e:
        _log_call(kind, backend_in_use(), user, None, str(e), t0)
        raise
    _log_call(kind, backend_in_use(), user, raw, None, t0)
    return raw.strip()


def complete_json(system: str, user: str, *, kind: str = "json",
                  temperature: float | None = None, max_tokens: int | None = None) -> Dict[str, Any]:
    """Chat completion parsed as a JSON object (markdown fences tolerated)."""
    t0 = time.time(); raw: str | None = None
    try:
        raw = _chat(system, user, temperature=temperature, max_tokens=max_tokens, json_mode=True)
        data = json.loads(strip_fences(raw))
        if not isinstance(data, dict):
            raise ValueError("LLM returned non-object JSON")
    except LLMUnavailable:
        raise
    except Exception as e:
        _log_call(kind, backend_in_use(), user, raw, str(e), t0)
        raise
    _log_call(kind, backend_in_use(), user, raw, None, t0)
    return data
