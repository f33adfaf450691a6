"""LearnPortal registration backend.

Self-service registration intake and administrative approval workflow
that turns an applicant into a provisioned platform identity.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
