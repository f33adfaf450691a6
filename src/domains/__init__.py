# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

Domains:
    auth: Password hashing and the external identity provider client.
    registration: Registration intake, approval decisions and provisioning.
"""
