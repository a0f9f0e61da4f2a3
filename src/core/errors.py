# Copyright (c) 2025 Trae AI. All rights reserved.


class SyncConfigurationError(Exception):
    """
    Raised before any work starts when a sync run cannot be configured.
    """
