"""
Startup environment variable validator.

Run before uvicorn starts (e.g. from a container entrypoint). Exits with
code 1 and prints what is missing when no LLM provider is configured, so a
deploy fails fast instead of serving 500s on every generation request.
"""

import os
import sys

# ── Required one-of: at least one in each group must be set ───────────────────
REQUIRED_ONE_OF = [
    {
        "vars": ["OPENROUTER_API_KEY", "OPENAI_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY"],
        "hint": "At least one AI provider key is required for summaries, flashcards and quizzes.",
    },
]

# ── Strongly recommended (warn but don't block) ────────────────────────────────
RECOMMENDED = {
    "REDIS_URL": "Sessions fall back to process memory and are lost on restart without Redis.",
    "HTTPS_ONLY": 'Set to "true" in production so the session cookie is only sent over HTTPS.',
}

KNOWN_PROVIDERS = ("", "openrouter", "openai", "gemini")


def _check() -> bool:
    errors: list[str] = []
    warnings: list[str] = []

    for group in REQUIRED_ONE_OF:
        if not any(os.getenv(v) for v in group["vars"]):
            names = " | ".join(group["vars"])
            errors.append(f"  MISSING  one of: {names}\n           {group['hint']}")

    provider = os.getenv("AI_PROVIDER", "").lower()
    if provider not in KNOWN_PROVIDERS:
        errors.append(f"  INVALID  AI_PROVIDER={provider!r}\n           Use one of: openrouter, openai, gemini")

    backend = os.getenv("SESSION_BACKEND", "auto").lower()
    if backend not in ("auto", "redis", "memory"):
        errors.append(f"  INVALID  SESSION_BACKEND={backend!r}\n           Use one of: auto, redis, memory")
    elif backend == "redis" and not os.getenv("REDIS_URL"):
        errors.append("  MISSING  REDIS_URL\n           Required when SESSION_BACKEND=redis")

    for var, hint in RECOMMENDED.items():
        if not os.getenv(var):
            warnings.append(f"  WARN  {var} not set — {hint}")

    # ── Report ─────────────────────────────────────────────────────────────────
    if warnings:
        print("=" * 65)
        print("startup_check: WARNINGS (non-fatal)")
        print("=" * 65)
        for w in warnings:
            print(w)
        print()

    if errors:
        print("=" * 65)
        print("startup_check: FAILED — environment is not usable")
        print("=" * 65)
        for e in errors:
            print(e)
        print("=" * 65)
        return False

    print("startup_check: OK — LLM provider and session backend are configured")
    return True


if __name__ == "__main__":
    if not _check():
        sys.exit(1)
