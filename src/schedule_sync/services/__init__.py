"""Application services orchestrating data access and sync logic."""

from __future__ import annotations

from .apply import SyncApplyService
from .autofill import AutofillService
from .context import SIGN_IN_MESSAGE, ServiceContext
from .declarations import DeclarationService
from .overrides import OverrideService
from .preview import SyncPreviewService

__all__ = [
    "AutofillService",
    "DeclarationService",
    "OverrideService",
    "SIGN_IN_MESSAGE",
    "ServiceContext",
    "SyncApplyService",
    "SyncPreviewService",
]
