CHECKS_METRIC = "checks"


def check(subject, predicates, registry):
    """Evaluate every named predicate against ``subject`` and record each outcome.

    A false predicate is only counted; the caller keeps going either way.
    Returns True when every predicate held.
    """
    rate = registry.rate(CHECKS_METRIC)
    ok = True
    for name, predicate in predicates.items():
        passed = bool(predicate(subject))
        rate.add(passed)
        registry.check_tally.add(name, passed)
        ok = ok and passed
    return ok
