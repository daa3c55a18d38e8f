# SPDX-License-Identifier: MIT
"""Platform policy base classes and toolchain resolution."""
