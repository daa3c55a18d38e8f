# SPDX-License-Identifier: MIT
"""Platform detection and generator configuration."""
