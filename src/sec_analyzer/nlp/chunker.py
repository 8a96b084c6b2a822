"""Token-aware text chunking for section text fed to transformer models."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from transformers import PreTrainedTokenizer


def chunk_text(
    text: str,
    tokenizer: PreTrainedTokenizer,
    max_tokens: int = 512,
    overlap_tokens: int = 128,
) -> list[str]:
    """Split text into overlapping chunks of at most *max_tokens* tokens.

    Uses the model's own tokenizer so no chunk exceeds its context window.
    The overlap is capped below *max_tokens* so the window always advances.
    """
    if not text or not text.strip():
        return []

    token_ids = tokenizer.encode(text, add_special_tokens=False)
    total_tokens = len(token_ids)

    if total_tokens <= max_tokens:
        return [text]

    step = max(1, max_tokens - min(overlap_tokens, max_tokens - 1))
    chunks = []
    start = 0
    while start < total_tokens:
        end = min(start + max_tokens, total_tokens)
        decoded = tokenizer.decode(token_ids[start:end], skip_special_tokens=True)
        if decoded.strip():
            chunks.append(decoded)
        if end >= total_tokens:
            break
        start += step

    return chunks
