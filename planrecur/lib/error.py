#!/usr/bin/env python
import logging
import os
from typing import Optional

from planrecur import __version__

## Environmental variables prepended with "PYTHON_PLANRECUR" are used for debug purposes,
## environmental variables prepended with "PLANRECUR_" are for engine settings (see planrecur.config)
## one of DEBUG_PDB, DEBUG, DEVELOPMENT, PRODUCTION
debugmode = os.environ.get("PYTHON_PLANRECUR_DEBUGMODE")
if not debugmode:
    if "dev" in __version__ or __version__ == "(unknown)":
        debugmode = "DEVELOPMENT"
    else:
        debugmode = "PRODUCTION"

log = logging.getLogger("planrecur")
if debugmode.startswith("DEBUG"):
    log.setLevel(logging.DEBUG)
else:
    log.setLevel(logging.WARNING)


def weirdness(*reasons) -> None:
    """Log (and in DEBUG_PDB mode, break on) input data that does not
    look the way it should, but which the engine can still work around"""
    reason = " : ".join([str(x) for x in reasons])
    log.warning(f"Deviation from expectations found: {reason}")
    if debugmode == "DEBUG_PDB":
        log.error(f"Dropping into debugger due to {reason}")
        import pdb

        pdb.set_trace()


def assert_(condition: object) -> None:
    try:
        assert condition
    except AssertionError:
        if debugmode == "PRODUCTION":
            log.error(
                "Deviation from expectations found.  %s" % ERR_FRAGMENT, exc_info=True
            )
        elif debugmode == "DEBUG_PDB":
            log.error("Deviation from expectations found.  Dropping into debugger")
            import pdb

            pdb.set_trace()
        else:
            raise


ERR_FRAGMENT: str = "Please consider raising an issue, include this error, the traceback (if any) and the recurrence rule that triggered it"


class PlanRecurError(Exception):
    reason: str = "no reason"

    def __init__(self, reason: Optional[str] = None) -> None:
        if reason:
            self.reason = reason
        super().__init__(self.reason)

    def __str__(self) -> str:
        return "%s, reason %s" % (self.__class__.__name__, self.reason)


class RuleParseError(PlanRecurError):
    """
    The rule string could not be turned into a recurrence config.

    Only raised by the rule codec in strict mode - FREQ is absent or
    holds a value outside DAILY/WEEKLY/MONTHLY/YEARLY.  The rule
    property holds the offending input.
    """

    rule: Optional[str] = None

    def __init__(self, rule: Optional[str] = None, reason: Optional[str] = None) -> None:
        self.rule = rule
        super().__init__(reason)

    def __str__(self) -> str:
        return "%s for rule '%s', reason %s" % (
            self.__class__.__name__,
            self.rule,
            self.reason,
        )
