"""Workflow services behind the rbi commands.

Each service coordinates git (rbi.git), gh (rbi.services.gh) and the
console, and returns a Result[..., WorkflowError].
"""

from rbi.services.branches import BranchService
from rbi.services.errors import WorkflowError
from rbi.services.hooks import HookService
from rbi.services.release import ReleaseService
from rbi.services.rulesets import RulesetsService
from rbi.services.setup import SetupService
from rbi.services.ship import ShipService
from rbi.services.staging import StagingService
from rbi.services.status import StatusService

__all__ = [
    "BranchService",
    "HookService",
    "ReleaseService",
    "RulesetsService",
    "SetupService",
    "ShipService",
    "StagingService",
    "StatusService",
    "WorkflowError",
]
