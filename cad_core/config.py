from __future__ import annotations
import os, json, pathlib, logging


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip()


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(p.strip() for p in raw.split(",") if p.strip())


LLM_BACKEND: str = "none"          # "none" | "openai" | "azure"
OPENAI_MODEL: str = "gpt-4o-mini"
LLM_TEMPERATURE: float = 0.7
LLM_MAX_TOKENS: int = 800
LLM_LOG_PATH: str = "llm_call_log.jsonl"

STORAGE_BACKEND: str = "json"      # "json" | "supabase"
DATA_DIR: str = "data"

NOTIFY_ENABLED: bool = True
EMAIL_FROM: str = "3PN <onboarding@resend.dev>"
ADMIN_EMAILS: tuple[str, ...] = ()
CC_EMAILS: tuple[str, ...] = ()
SITE_URL: str = "http://localhost:3000"
EMAIL_TIMEZONE: str = "Africa/Lagos"

ADMIN_API_KEY: str = ""

ALLOWED_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "http://localhost:5173",
)

BANK_MIN_PER_PILLAR: int = 3
BANK_EXPECT_STAGES: tuple[int, ...] = (1, 2, 3)

LOG_LEVEL: str = "INFO"

# // env overrides for staging/ops; defaults stay offline-safe.
LLM_BACKEND = _env_str("LLM_BACKEND", LLM_BACKEND).lower()
OPENAI_MODEL = _env_str("OPENAI_MODEL", OPENAI_MODEL)
LLM_TEMPERATURE = _env_float("LLM_TEMPERATURE", LLM_TEMPERATURE)
LLM_MAX_TOKENS = _env_int("LLM_MAX_TOKENS", LLM_MAX_TOKENS)
LLM_LOG_PATH = _env_str("LLM_LOG_PATH", LLM_LOG_PATH)
STORAGE_BACKEND = _env_str("STORAGE_BACKEND", STORAGE_BACKEND).lower()
DATA_DIR = _env_str("DATA_DIR", DATA_DIR)
NOTIFY_ENABLED = _env_bool("NOTIFY_ENABLED", NOTIFY_ENABLED)
EMAIL_FROM = _env_str("EMAIL_FROM", EMAIL_FROM)
ADMIN_EMAILS = _env_list("ADMIN_EMAILS", ADMIN_EMAILS)
CC_EMAILS = _env_list("CC_EMAILS", CC_EMAILS)
SITE_URL = _env_str("SITE_URL", SITE_URL).rstrip("/")
EMAIL_TIMEZONE = _env_str("EMAIL_TIMEZONE", EMAIL_TIMEZONE)
ADMIN_API_KEY = _env_str("ADMIN_API_KEY", ADMIN_API_KEY)
ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS", ALLOWED_ORIGINS)
BANK_MIN_PER_PILLAR = _env_int("BANK_MIN_PER_PILLAR", BANK_MIN_PER_PILLAR)
LOG_LEVEL = _env_str("LOG_LEVEL", LOG_LEVEL).upper()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def load_config(path: str = "config.json") -> dict:
    """Merge an optional config.json with environment overrides."""
    cfg: dict = {}
    p = pathlib.Path(path)
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except ValueError: cfg = {}
    e = os.environ
    for k in ("LLM_BACKEND", "OPENAI_API_KEY", "OPENAI_MODEL",
              "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY",
              "AZURE_OPENAI_API_VERSION", "AZURE_OPENAI_DEPLOYMENT",
              "STORAGE_BACKEND", "DATA_DIR", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY",
              "RESEND_API_KEY", "EMAIL_FROM", "SITE_URL", "ADMIN_API_KEY"):
        if e.get(k): cfg[k] = e.get(k)
    if e.get("LLM_TEMPERATURE"): cfg["LLM_TEMPERATURE"] = _env_float("LLM_TEMPERATURE", LLM_TEMPERATURE)
    if e.get("NOTIFY_ENABLED") is not None: cfg["NOTIFY_ENABLED"] = _env_bool("NOTIFY_ENABLED", NOTIFY_ENABLED)
    if e.get("ADMIN_EMAILS") is not None: cfg["ADMIN_EMAILS"] = list(_env_list("ADMIN_EMAILS", ADMIN_EMAILS))
    if e.get("CC_EMAILS") is not None: cfg["CC_EMAILS"] = list(_env_list("CC_EMAILS", CC_EMAILS))
    cfg.setdefault("LLM_BACKEND", LLM_BACKEND)
    cfg.setdefault("STORAGE_BACKEND", STORAGE_BACKEND)
    cfg.setdefault("DATA_DIR", DATA_DIR)
    return cfg


def get_backend(cfg: dict) -> str | None:
    b = str(cfg.get("LLM_BACKEND") or "").lower().strip()
    return b if b in ("openai", "azure") else None
