"""
definject Package.

Definition-time dependency injection: functions decorated with ``@definject``
are recompiled so that every call into another module goes through a
dispatcher, and accept a dependency map that substitutes any of those calls.

Usage
-----

.. code-block:: python

    from definject import definject, mock

    @definject
    def send_welcome_email(user_id):
      user = repo.get(User, user_id)
      return mailer.send(email.welcome(user.email))

    # In a test:
    send_welcome_email(
      100,
      deps=mock({"app.repo.get/2": User(email="someone@example.com"), "app.mailer.send/1": "sent"}),
    )

Injection is enabled by default only when pytest is loaded; set
``DEFINJECT_ENABLED=1`` or ``[tool.definject] enabled = true`` to force it.
"""

from definject.config import RuntimeConfig, get_config, reset_config, set_config
from definject.core.errors import InjectionError, ModifierError, UnusedDependencyError
from definject.injector import InjectionPlan, definject, inject_function, inject_source, plan_injection
from definject.mocking import function_key, make_const_function, mock
from definject.runtime import check_dependencies, dispatch, macro

__version__ = "0.1.0"

__all__ = [
  "definject",
  "inject_function",
  "inject_source",
  "plan_injection",
  "InjectionPlan",
  "dispatch",
  "check_dependencies",
  "macro",
  "mock",
  "make_const_function",
  "function_key",
  "RuntimeConfig",
  "get_config",
  "set_config",
  "reset_config",
  "InjectionError",
  "ModifierError",
  "UnusedDependencyError",
  "__version__",
]
