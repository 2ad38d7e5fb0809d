"""Error reports, level save files and trigger optimisation for SPWN."""

__version__ = "0.0.8"

__all__ = [
    "compiler_info",
    "errors",
    "levelstring",
    "model",
    "network",
    "dead_code",
    "spawn_optimisation",
    "trigger_dedup",
    "group_toggling",
    "optimize",
]