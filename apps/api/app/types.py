"""Shared type aliases."""

from __future__ import annotations

from typing import TypeAlias

# Result of an outbound email send: {"success": bool, "message_id"?: str, "error"?: str}
EmailResult: TypeAlias = dict[str, object]
