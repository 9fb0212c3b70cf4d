from __future__ import annotations

from dataclasses import dataclass, field

from ..services import (
    AutofillService,
    DeclarationService,
    OverrideService,
    ServiceContext,
    SyncApplyService,
    SyncPreviewService,
)


@dataclass(slots=True)
class ApiState:
    context: ServiceContext = field(default_factory=ServiceContext)
    declarations: DeclarationService = field(init=False)
    preview: SyncPreviewService = field(init=False)
    apply: SyncApplyService = field(init=False)
    overrides: OverrideService = field(init=False)
    autofill: AutofillService = field(init=False)

    def __post_init__(self) -> None:
        self._wire()

    def _wire(self) -> None:
        self.declarations = DeclarationService(self.context)
        self.preview = SyncPreviewService(self.context)
        self.apply = SyncApplyService(self.context)
        self.overrides = OverrideService(self.context)
        self.autofill = AutofillService(self.context)

    def use_context(self, context: ServiceContext) -> None:
        """Rebind every service to ``context`` (used by tests and alternate deployments)."""

        self.context = context
        self._wire()


api_state = ApiState()
