"""Shared model helpers."""

import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Union

# Metadata maps carry primitive values only
MetadataValue = Optional[Union[str, int, float, bool]]
Metadata = Dict[str, MetadataValue]


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque record identifier."""
    return str(uuid.uuid4())
