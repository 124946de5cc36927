# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
Copy a host file into an existing tagged container image, preserving the image's run
configuration.
"""

from copytoimage.patcher import ImagePatcher, PatchResult, patch
from copytoimage.request import ImageReference, PatchRequest

__all__ = ["ImagePatcher", "ImageReference", "PatchRequest", "PatchResult", "patch"]
