"""
Resource Spine - data-access layer for resource-oriented applications.

- resource_spine.core: escaping, statements, transactions, CRUD, locks
- resource_spine.ops: application operations (thermostat alerts, sync)
- resource_spine.cli: ``resource-spine`` command line
"""

__version__ = "0.1.0"

from resource_spine.core import *  # noqa
