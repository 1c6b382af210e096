# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point (python -m datastore_sql)."""

from .cli import main

if __name__ == "__main__":
    main()
