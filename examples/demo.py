#!/usr/bin/env python3
"""
intime demo: a few weeks of keeping in touch, simulated.

No server. No API keys. Just run it.
"""

import os
import tempfile

from intime import Keeper
from intime.models import DAY_MS


class SimClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def days(self, n: float) -> None:
        self.now += int(n * DAY_MS)


def header(text):
    print(f"\n{'='*64}")
    print(f"  {text}")
    print(f"{'='*64}\n")


def show(keeper):
    for friend in keeper.due_order():
        r = keeper.reading(friend.id)
        n = int(r.cycle_percent / 5)
        bar = "█" * n + "░" * (20 - n)
        print(f"    {bar} {friend.name:<8} {r.status.value:<11} "
              f"due in {r.days_until_due:>3}d | streak {friend.streak_count} "
              f"x{friend.multiplier:.1f} | health {keeper.health(friend.id)}")
    print(f"\n    overall health: {keeper.overall_health()}\n")


def main():
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    clock = SimClock()
    keeper = Keeper(db_path, clock=clock)

    header("INTIME: Cadence Demo")
    ana = keeper.add_friend("Ana", cadence_days=14)
    bob = keeper.add_friend("Bob", cadence_days=7, relationship_tier="casual")
    keeper.log_meeting(ana.id, note="coffee")
    keeper.log_meeting(bob.id)
    show(keeper)

    header("WEEKS 1-4: Ana on time, Bob drifting")
    for week in range(4):
        clock.days(7)
        if week % 2 == 1:
            keeper.log_meeting(ana.id)
        if week == 0:
            keeper.log_meeting(bob.id)
    show(keeper)

    header("DELETE + UNDO")
    keeper.delete_friend(bob.id)
    print(f"  deleted Bob, friends now: {[f.name for f in keeper.due_order()]}")
    keeper.undo_delete()
    print(f"  undo, friends now:        {[f.name for f in keeper.due_order()]}")

    header("BACKUP")
    text = keeper.export_json()
    print(f"  exported {len(text)} bytes")
    keeper.reset()
    keeper.import_backup(text)
    print(f"  re-imported: {keeper}")

    keeper.close()
    os.unlink(db_path)


if __name__ == "__main__":
    main()
