"""Internal Cloud Controller transport."""

from __future__ import annotations

from .cf_controller import ApiResponse, CloudFoundryController

__all__ = ["ApiResponse", "CloudFoundryController"]
