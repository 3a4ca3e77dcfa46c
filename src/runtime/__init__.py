# path: src/runtime/__init__.py

"""
Runtime wiring package for the guard bot.

Holds entrypoints that stitch together:
- bot_core (bridge-backed WorldClient)
- guard (decision core)
- supervisor (multi-bot process manager)
and the monitoring stack.

Usage:
    python -m runtime.supervisor_main
    python -m runtime.bot_main <name> <host> <port>
"""
