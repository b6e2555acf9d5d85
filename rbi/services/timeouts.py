from __future__ import annotations

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0

# Package manager installs (pnpm add -D, npm install -D)
INSTALL_TIMEOUT_SECONDS = 10 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
