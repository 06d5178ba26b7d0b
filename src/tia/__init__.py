# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tile Inventory app: local authentication and session handling."""

__version__ = "0.1.0"
