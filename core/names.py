# core/names.py

"""Display name generation for new connections."""

import random

PREFIXES = ("neo", "hyper", "sky", "lil", "big", "ghost", "x", "drip", "vibe", "glitch", "omega", "nano", "zero")
ADJECTIVES = ("chill", "savage", "dope", "wavy", "lit", "snazzy", "quirky", "spooky", "rad", "slick", "frosty")
NOUNS = ("pixel", "ninja", "panda", "rider", "vortex", "ghost", "comet", "mango", "wizard", "droid", "burrito")


def generate_display_name(rng: random.Random) -> str:
    """Generate a name like ``neo-chillpanda42``."""
    prefix = rng.choice(PREFIXES)
    adjective = rng.choice(ADJECTIVES)
    noun = rng.choice(NOUNS)
    number = rng.randint(1, 998)
    return f"{prefix}-{adjective}{noun}{number}"
