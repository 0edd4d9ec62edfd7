"""Lifecycle orchestration: waits, resize sequencing and the controller."""

from .controller import LifecycleController, check_user_data
from .resize import ResizePath, change_processor_type, plan_resize, resize_instance
from .state_machine import (
    wait_for_available,
    wait_for_deleted,
    wait_for_resized,
    wait_for_stopped,
)

__all__ = [
    "LifecycleController",
    "check_user_data",
    "ResizePath",
    "change_processor_type",
    "plan_resize",
    "resize_instance",
    "wait_for_available",
    "wait_for_deleted",
    "wait_for_resized",
    "wait_for_stopped",
]
