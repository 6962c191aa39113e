# SPDX-FileCopyrightText: 2025-present DouglasMacKrell <d.mackrell@gmail.com>
#
# SPDX-License-Identifier: MIT

"""sonarrimport - Submit downloaded episodes to Sonarr for import."""

from sonarrimport.__about__ import __version__

__all__ = ["__version__"]
