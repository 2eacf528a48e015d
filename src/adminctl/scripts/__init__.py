"""Script commands bundled with adminctl.

Every public module here is discovered as a command. A module exposes
``handler(args, config)`` (plain or ``async``) and may set ``name``,
``aliases`` and ``description``.
"""
