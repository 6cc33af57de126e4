from .show import handle_keys, handle_show, resolve_target

__all__ = ["handle_show", "handle_keys", "resolve_target"]
