# SPDX-License-Identifier: MIT
"""Target model, graph and path expansion."""
