from __future__ import annotations

import os


# Central routing for LLM use-cases. Edit here to change per-operation defaults.
# You can also override per-route model via env vars for quick testing.
#
# Keys are use_case identifiers consumed by services/llm_client.py
ROUTES: dict[str, dict] = {
    # Résumé extraction (OpenAI-compatible chat with a forced function tool)
    "resume_extraction": {
        "provider": os.getenv("LLM_RESUME_PROVIDER"),  # falls back to AI_PROVIDER
        "model": os.getenv("OPENAI_MODEL_RESUME"),  # falls back to global OPENAI_MODEL
        "temperature": 0.1,
        "max_tokens": 8000,
        # Logical operation name for logging (not a vendor API name)
        "operation": "resume_extraction",
    },
}
