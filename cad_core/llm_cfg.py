# cad_core/llm_cfg.py
from __future__ import annotations
import os, json, pathlib
from dataclasses import dataclass
from openai import AzureOpenAI, OpenAI

from . import config

@dataclass(frozen=True)
class LLMSettings:
    backend: str
    api_key: str
    model: str
    endpoint: str = ""
    api_version: str = ""

def _from_env(backend: str) -> dict[str, str]:
    if backend == "azure":
        return {
            "endpoint":   os.getenv("AZURE_OPENAI_ENDPOINT", ""),
            "api_key":    os.getenv("AZURE_OPENAI_API_KEY", ""),
            "api_version":os.getenv("AZURE_OPENAI_API_VERSION", ""),
            "model":      os.getenv("AZURE_OPENAI_DEPLOYMENT", ""),
        }
    return {
        "api_key": os.getenv("OPENAI_API_KEY", ""),
        "model":   os.getenv("OPENAI_MODEL", config.OPENAI_MODEL),
    }

def _from_json(backend: str, path: str = ".llm_config.json") -> dict[str, str]:
    p = pathlib.Path(path)
    if not p.exists(): return {}
    try:
        j = json.loads(p.read_text(encoding="utf-8")).get(backend, {})
    except ValueError:
        return {}
    keys = ("endpoint", "api_key", "api_version", "model") if backend == "azure" else ("api_key", "model")
    return {k: str(j.get(k, "")) for k in keys}

def settings(backend: str) -> LLMSettings:
    cfg = _from_env(backend)
    if not all(cfg.values()):
        for k, v in _from_json(backend).items():
            if not cfg.get(k): cfg[k] = v
    missing = [k for k, v in cfg.items() if not v]
    if missing:
        raise RuntimeError(f"{backend} LLM not configured. Missing: {', '.join(missing)}")
    return LLMSettings(backend=backend, **cfg)

def client(s: LLMSettings) -> OpenAI:
    if s.backend == "azure":
        return AzureOpenAI(
            azure_endpoint=s.endpoint,
            api_key=s.api_key,
            api_version=s.api_version,
        )
    return OpenAI(api_key=s.api_key)
