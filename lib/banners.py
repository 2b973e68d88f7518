# ulrsim service banners
# Copyright 2025 sysmocom - s.f.m.c. GmbH <info@sysmocom.de>
# SPDX-License-Identifier: AGPL-3.0-or-later


class Banners:

    def _logo(self) -> str:
        return r"""
  _   _ _     ____  ____  _
 | | | | |   |  _ \/ ___|(_)_ __ ___
 | | | | |   | |_) \___ \| | '_ ` _ \
 | |_| | |___|  _ < ___) | | | | | | |
  \___/|_____|_| \_\____/|_|_| |_| |_|
"""

    def apiService(self) -> str:
        return self._logo() + """
        S6a Update-Location Simulator
                 API Service

"""
