# SPDX-License-Identifier: MIT
"""Helpers run from generated build rules."""
