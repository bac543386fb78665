"""Block ID generation utilities for editguard."""

import uuid
from typing import Optional


# Namespace UUID for editguard block ids (fixed so ids are reproducible across runs)
EDITGUARD_NAMESPACE = uuid.UUID("6b1f0c2e-4d8a-5e37-9a41-0c7d2f5b8e93")

# Only the head of a block takes part in its id
BLOCK_ID_SAMPLE_LENGTH = 50


def generate_deterministic_uuid(content: str, namespace: Optional[uuid.UUID] = None) -> str:
    """
    Generate deterministic UUID v5 from content string.

    Same content always generates the same UUID.

    Args:
        content: Content string to hash
        namespace: UUID namespace (defaults to EDITGUARD_NAMESPACE)

    Returns:
        UUID string in standard format
    """
    if namespace is None:
        namespace = EDITGUARD_NAMESPACE

    return str(uuid.uuid5(namespace, content))


def generate_block_id(text: str, index: int) -> str:
    """
    Derive a body block id from its content and position.

    The id is a correlation key, not a content hash guarantee: two blocks that
    share their first 50 characters and position get the same id, and a block
    that moves gets a new one.

    Args:
        text: Block text
        index: 0-based position of the block in the body

    Returns:
        Block id such as "blk_1a2b3c4d_0"

    Example:
        >>> generate_block_id("First paragraph of the body", 0)
        "blk_..._0"
    """
    sample = text[:BLOCK_ID_SAMPLE_LENGTH]
    digest = generate_deterministic_uuid(sample).replace("-", "")[:8]
    return f"blk_{digest}_{index}"
