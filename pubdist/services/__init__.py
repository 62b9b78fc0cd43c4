# SPDX-License-Identifier: MIT
"""Publish services."""
