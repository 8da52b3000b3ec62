"""Built-in CLI sub-commands for retoken.

- :mod:`~retoken.commands.config` -- ``retoken config`` group.
- :mod:`~retoken.commands.credentials` -- ``retoken credentials`` group.
- :mod:`~retoken.commands.request` -- ``retoken request`` command.
"""
