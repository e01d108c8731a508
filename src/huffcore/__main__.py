from __future__ import annotations

from huffcore.cli import main

raise SystemExit(main())
