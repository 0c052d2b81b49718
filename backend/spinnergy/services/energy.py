import random
import time

MIN_JOULES = 0.2
MAX_JOULES = 2.2


def simulate_energy(rng=None, clock=time.time):
    """Return a fake harvester reading for demos without the Bluetooth device."""
    rng = rng or random
    return {
        'energy': round(rng.uniform(MIN_JOULES, MAX_JOULES), 2),
        'ts': int(clock() * 1000),
    }
