"""
Service Layer - StoreService, UpdateService, ApplyService, HookInstaller, and ServicesContainer.
"""

from gitmeta.services.apply_service import ApplyService
from gitmeta.services.container import ServicesContainer, create_services
from gitmeta.services.hook_installer import HOOK_TEMPLATES, HookInstaller, render_hook
from gitmeta.services.measurement import FileMeasurer, resolve_fields
from gitmeta.services.models import (
    ApplyResult,
    DirtyWorkingTreeError,
    HookExistsError,
    StoreResult,
    UpdateResult,
)
from gitmeta.services.store_service import StoreService
from gitmeta.services.update_service import (
    MergeKind,
    MergeLine,
    MergeStats,
    UpdateService,
    change_events,
    existing_lines,
    placeholder_events,
    resolve_merge,
)

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Measurement
    "FileMeasurer",
    "resolve_fields",
    # Services
    "StoreService",
    "StoreResult",
    "UpdateService",
    "UpdateResult",
    "ApplyService",
    "ApplyResult",
    "HookInstaller",
    # Update merge
    "MergeKind",
    "MergeLine",
    "MergeStats",
    "change_events",
    "existing_lines",
    "placeholder_events",
    "resolve_merge",
    # Hooks
    "HOOK_TEMPLATES",
    "render_hook",
    # Errors
    "DirtyWorkingTreeError",
    "HookExistsError",
]
