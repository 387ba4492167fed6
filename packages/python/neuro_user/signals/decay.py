# absolute day difference between two epoch timestamps
def _days(a: float, b: float) -> float:
    return abs(b - a) / 86400.0


# passive fade for untouched weights: (1 - beta) per elapsed day
def idle_decay(last: float | None, now: float, beta_daily: float) -> float:
    if last is None or now <= last or beta_daily <= 0:
        return 1.0
    return (1.0 - min(beta_daily, 1.0)) ** _days(last, now)
